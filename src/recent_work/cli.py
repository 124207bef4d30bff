from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import ensure_config_file, load_config, save_config, scan_config_from_dict, scan_config_to_dict
from .errors import RecentWorkError
from .identity import ME_TOKEN, resolve_author_filter
from .models import ScanConfig
from .render import format_config, render_results, render_timeline
from .scan import check_root_directory, scan_projects

DEFAULT_CONFIG_PATH = Path("recent-work.json")


def _add_scan_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to a JSON config file (optional).")
    p.add_argument("--root", type=Path, default=None, help="Root directory to scan for git repos.")
    p.add_argument("--days", type=int, default=None, help="Number of days to look back.")
    p.add_argument("--depth", type=int, default=None, help="Maximum directory depth to scan.")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--author", type=str, default=None, help="Author filter: a name/email substring, or 'me'.")
    g.add_argument("--mine", action="store_true", help="Only show commits by the current git user.")
    g.add_argument("--all-authors", action="store_true", help="Ignore any configured author filter.")
    p.add_argument("--max-commits", type=int, default=None, help="Maximum commits read per repository.")
    p.add_argument("--jobs", type=int, default=None, help="Parallel git processes.")
    p.add_argument("--timeout", type=float, default=None, help="Seconds allowed per batch of git processes.")
    p.add_argument("--ignore", type=str, nargs="+", default=None, help="Directory name patterns to skip.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show recent commits across the git repositories under a directory.")
    _add_scan_options(parser)
    parser.add_argument("--width", type=int, default=0, help="Truncate commit messages to this many characters.")
    parser.add_argument("--flat", action="store_true", help="List every commit newest first instead of grouping by repository.")
    return parser


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recent-work config", description="Show the effective configuration.")
    _add_scan_options(parser)
    parser.add_argument("--save", action="store_true", help="Write the effective configuration to --config.")
    parser.add_argument("--init", action="store_true", help="Create --config with default values if it does not exist.")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    out: dict = {}
    if args.root is not None:
        out["root_directory"] = str(args.root.resolve())
    if args.days is not None:
        out["days_back"] = args.days
    if args.depth is not None:
        out["max_depth"] = args.depth
    if args.mine:
        out["author_filter"] = ME_TOKEN
    elif args.all_authors:
        out["author_filter"] = ""
    elif args.author is not None:
        out["author_filter"] = args.author
    if args.max_commits is not None:
        out["max_commits_per_repository"] = args.max_commits
    if args.jobs is not None:
        out["concurrency_limit"] = args.jobs
    if args.timeout is not None:
        out["timeout_s"] = args.timeout
    if args.ignore is not None:
        out["ignore_patterns"] = list(args.ignore)
    return out


def _effective_config(args: argparse.Namespace, *, create: bool = False) -> ScanConfig:
    data = ensure_config_file(args.config) if create else load_config(args.config)
    base = scan_config_from_dict(data)
    return scan_config_from_dict(_overrides(args), base=base)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _run_config(argv: list[str]) -> int:
    args = _build_config_parser().parse_args(argv)
    _setup_logging(bool(args.verbose))
    try:
        cfg = _effective_config(args, create=bool(args.init))
        flt = resolve_author_filter(cfg.author_filter)
        if args.save:
            check_root_directory(Path(cfg.root_directory))
    except RecentWorkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print("\n".join(format_config(cfg, flt)))
    if args.save:
        save_config(args.config, scan_config_to_dict(cfg))
        print(f"\nWrote config: {args.config}")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "config":
        return _run_config(argv[1:])

    parser = _build_parser()
    parser.prog = "recent-work"
    args = parser.parse_args(argv)
    _setup_logging(bool(args.verbose))

    try:
        cfg = _effective_config(args)
        flt = resolve_author_filter(cfg.author_filter)
        results = scan_projects(cfg, author_filter=flt)
    except RecentWorkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    render = render_timeline if args.flat else render_results
    print("\n".join(render(results, cfg, flt, message_width=int(args.width))))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
