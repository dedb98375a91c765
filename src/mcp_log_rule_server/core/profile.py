"""Watch profiles: named rule sets persisted as JSON."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .models import PatternSpec
from .rules import RuleSet

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class PatternEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Human name of the rule.")
    source: str = Field(
        validation_alias=AliasChoices("source", "pattern"),
        description="Regular-expression source.",
    )

    def to_spec(self) -> PatternSpec:
        return PatternSpec(name=self.name, source=self.source)


class WatchProfile(BaseModel):
    """A named rule set bound to one log file."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Profile name.")
    file_path: str = Field(alias="filePath", description="Monitored log file path.")
    patterns: list[PatternEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("patterns", "error_patterns"),
    )

    def to_rule_set(self) -> RuleSet:
        return RuleSet(self.file_path, [p.to_spec() for p in self.patterns])

    @classmethod
    def from_rule_set(cls, name: str, rules: RuleSet) -> WatchProfile:
        return cls(
            name=name,
            file_path=str(rules.file_path),
            patterns=[PatternEntry(name=p.name, source=p.source) for p in rules.patterns],
        )


def save_profile(profile: WatchProfile, path: str | Path) -> Path:
    """Write ``profile`` as pretty JSON, replacing any existing file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(profile.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    logger.debug("Saved profile %r to %s", profile.name, p)
    return p


def load_profile(path: str | Path) -> WatchProfile:
    """Read and validate a profile file."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Profile not found: {p}")
    profile = WatchProfile.model_validate_json(p.read_text(encoding="utf-8"))
    logger.debug("Loaded profile %r from %s", profile.name, p)
    return profile


class ProfileStore:
    """Directory of saved profiles, one ``<slug>.json`` per profile name."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        slug = _SLUG_RE.sub("_", name.strip()).strip("._")
        if not slug:
            raise ValueError(f"Invalid profile name: {name!r}")
        return self.directory / f"{slug}.json"

    def save(self, profile: WatchProfile) -> Path:
        return save_profile(profile, self.path_for(profile.name))

    def load(self, name: str) -> WatchProfile:
        return load_profile(self.path_for(name))

    def names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))

    def find_for_log(self, log_path: str | Path) -> WatchProfile | None:
        """Return the first saved profile bound to ``log_path``, if any."""
        target = Path(log_path).resolve()
        for name in self.names():
            try:
                profile = load_profile(self.directory / f"{name}.json")
            except ValueError as e:
                logger.warning("Skipping unreadable profile %s: %s", name, e)
                continue
            if Path(profile.file_path).resolve() == target:
                return profile
        return None
