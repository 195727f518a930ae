"""CLI entrypoints for vibelint commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict

from .config import ConfigError
from .engine import Engine, RepoMissingError, resolve_repo
from .logging import configure_logging
from .models import AnalysisReport
from .reporting import write_markdown_report
from .stores import HistoryStore, RepoNotFoundError, RepoRegistry
from .stores.history import DEFAULT_HISTORY_LIMIT


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibelint",
        description="Run code-quality checks over a repository and report its health.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a repository and write .vibelint/reports/latest.md.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Repository path, registered id or name (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="SECTION.KEY=VALUE",
        help="Override a threshold for this run, e.g. --set complexity.warn=15.",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full report as JSON instead of a summary table.",
    )
    analyze_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the markdown report into the repository.",
    )
    analyze_parser.add_argument(
        "--no-history",
        action="store_true",
        help="Do not record this run in the analysis history.",
    )

    repos_parser = subparsers.add_parser("repos", help="Manage registered repositories.")
    _add_verbose_option(repos_parser, suppress_default=True)
    repos_sub = repos_parser.add_subparsers(dest="repos_command", required=True)
    add_parser = repos_sub.add_parser("add", help="Register a repository.")
    add_parser.add_argument("path", help="Path to the repository root.")
    add_parser.add_argument("--name", default=None, help="Display name (defaults to directory name).")
    repos_sub.add_parser("list", help="List registered repositories.")
    remove_parser = repos_sub.add_parser("remove", help="Unregister a repository.")
    remove_parser.add_argument("repo", help="Registered repository id, name or path.")

    history_parser = subparsers.add_parser("history", help="Show past analyses of a repository.")
    _add_verbose_option(history_parser, suppress_default=True)
    history_parser.add_argument("repo", help="Registered repository id, name or path.")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_HISTORY_LIMIT,
        help="Maximum number of analyses to show.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def parse_overrides(pairs: list[str]) -> Dict[str, Dict[str, str]]:
    """Turn ``section.key=value`` strings into a nested overrides mapping."""
    overrides: Dict[str, Dict[str, str]] = {}
    for pair in pairs:
        target, sep, value = pair.partition("=")
        section, dot, key = target.strip().partition(".")
        if not sep or not dot or not section or not key:
            raise ConfigError(f"Expected SECTION.KEY=VALUE, got '{pair}'")
        overrides.setdefault(section, {})[key] = value.strip()
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for vibelint commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "analyze":
        _run_analyze(parser, args)
    elif args.command == "repos":
        _run_repos(parser, args)
    elif args.command == "history":
        _run_history(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    registry = RepoRegistry()
    engine = Engine(registry=registry)
    try:
        overrides = parse_overrides(args.overrides)
        report = engine.run(args.path, overrides)
    except (RepoNotFoundError, RepoMissingError, ConfigError) as exc:
        parser.exit(1, f"{exc}\n")

    if not args.no_report:
        report_path = write_markdown_report(report)
    if not args.no_history:
        HistoryStore().record(report)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return
    _print_summary(report)
    if not args.no_report:
        print(f"Report written to {_relativize(report_path)}")


def _run_repos(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    registry = RepoRegistry()
    if args.repos_command == "add":
        try:
            ref = registry.add(Path(args.path), name=args.name)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Registered {ref.name} ({ref.id}) at {ref.path}")
        return
    if args.repos_command == "remove":
        ref = registry.find(args.repo)
        if ref is None:
            parser.exit(1, f"Repository not found: {args.repo}\n")
        registry.remove(ref.id)
        print(f"Removed {ref.name} ({ref.id})")
        return
    refs = registry.list()
    if not refs:
        print("No repositories registered")
        return
    for ref in refs:
        print(f"{ref.id}  {ref.name}  {ref.path}")


def _run_history(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        repo = resolve_repo(args.repo, RepoRegistry())
    except (RepoNotFoundError, RepoMissingError) as exc:
        parser.exit(1, f"{exc}\n")
    entries = HistoryStore().history(repo.id, limit=args.limit)
    if not entries:
        print(f"No analyses recorded for {repo.name}")
        return
    for entry in entries:
        print(f"{entry.get('timestamp', '?')}  {str(entry.get('status', '?')).upper()}")


def _print_summary(report: AnalysisReport) -> None:
    print(f"{report.repo_name}: {report.status.label} ({report.total_files} source files)")
    width = max((len(check.name) for check in report.checks), default=0)
    for check in report.checks:
        print(f"  {check.name.ljust(width)}  {check.status.label:<4}  {check.summary}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
