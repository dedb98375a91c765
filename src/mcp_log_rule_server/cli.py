from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from mcp_log_rule_server.core.config import resolve_monitor_config
from mcp_log_rule_server.core.profile import ProfileStore
from mcp_log_rule_server.core.session import MonitorSession
from mcp_log_rule_server.core.synthesis import synthesize_with_anchor
from mcp_log_rule_server.core.trainer import try_pattern


def _parse_named_pattern(s: str) -> tuple[str, str]:
    name, sep, source = s.partition("=")
    if not sep or not name.strip() or not source:
        raise argparse.ArgumentTypeError("pattern must look like NAME=REGEX")
    return name.strip(), source


def _cmd_synth(args: argparse.Namespace) -> int:
    source, anchor = synthesize_with_anchor(args.line)
    print(source)
    if anchor is not None:
        print(f"anchor: {anchor.text(args.line)!r} ({anchor.kind.value})", file=sys.stderr)
    else:
        print("anchor: none", file=sys.stderr)
    return 0


def _cmd_test(args: argparse.Namespace) -> int:
    matched = asyncio.run(try_pattern(args.pattern, Path(args.log_path), limit=args.lines))
    for line in matched:
        print(line)
    print(f"\n{len(matched)} matching lines.")
    return 0


async def _watch(session: MonitorSession, *, from_start: bool) -> None:
    session.start(from_end=not from_start)
    try:
        while True:
            for event in session.poll():
                print(f"[{event.rule_name}] {event.line}", flush=True)
            if not session.running:
                break
            await asyncio.sleep(session.config.poll_interval)
    finally:
        await session.stop()


def _cmd_watch(args: argparse.Namespace) -> int:
    path = Path(args.log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    config = resolve_monitor_config(poll_interval=args.poll_interval)
    store = ProfileStore(args.profile_dir or config.profile_dir)
    # The store is only read here; --pattern rules are not saved.
    profile = store.load(args.profile) if args.profile else store.find_for_log(path)
    session = MonitorSession(path, profile=profile, config=config)

    for name, source in args.patterns:
        session.add_pattern(name, source)
    for diag in session.rules.diagnostics:
        print(f"Skipping invalid pattern {diag.name!r}: {diag.error}", file=sys.stderr)
    if not session.rules.compiled:
        raise ValueError("No usable patterns. Pass --pattern NAME=REGEX or --profile NAME.")

    try:
        asyncio.run(_watch(session, from_start=args.from_start))
    except KeyboardInterrupt:
        pass
    return 0


def main() -> None:
    """CLI entrypoint for local use (not MCP)."""
    p = argparse.ArgumentParser(description="Build log rules from sample lines and watch files.")
    sub = p.add_subparsers(dest="command", required=True)

    synth = sub.add_parser("synth", help="Print a pattern synthesized from a sample line")
    synth.add_argument("line")
    synth.set_defaults(func=_cmd_synth)

    test = sub.add_parser("test", help="Print recent lines of a file matched by a pattern")
    test.add_argument("pattern")
    test.add_argument("log_path")
    test.add_argument("--lines", type=int, default=1000, help="How many recent lines to search")
    test.set_defaults(func=_cmd_test)

    watch = sub.add_parser("watch", help="Tail a file and print rule matches")
    watch.add_argument("log_path")
    watch.add_argument("--profile", default=None, help="Saved profile name to load")
    watch.add_argument("--profile-dir", default=None, help="Profile directory (default: ./profiles)")
    watch.add_argument(
        "--pattern",
        dest="patterns",
        action="append",
        type=_parse_named_pattern,
        default=[],
        help="Extra rule as NAME=REGEX (repeatable, not saved)",
    )
    watch.add_argument("--from-start", action="store_true", help="Evaluate existing lines too")
    watch.add_argument("--poll-interval", type=float, default=None)
    watch.set_defaults(func=_cmd_watch)

    args = p.parse_args()

    try:
        code = args.func(args)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (ValueError, argparse.ArgumentTypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
