import argparse
import json
import logging
import sys
from collections.abc import Sequence

from grotop.audit import SiteReport, audit_site
from grotop.config import Settings, get_settings, set_settings
from grotop.errors import GrotopError
from grotop.report import format_report, render_markdown, report_json
from grotop.sites import ALL_SITES


def handle_sites() -> int:
    for name, factory in ALL_SITES.items():
        site = factory()
        print(f"{name:<16} {site.description}")
    return 0


def handle_check(
    names: Sequence[str],
    *,
    output: str,
    lemmas: bool,
) -> int:
    """Audit each named site and print a report; 1 if any obligation is violated."""
    reports: list[SiteReport] = []
    for name in names:
        factory = ALL_SITES.get(name)
        if factory is None:
            print(f"Unknown site: {name} (try 'grotop sites')", file=sys.stderr)
            return 2
        try:
            reports.append(audit_site(factory(), lemmas=lemmas))
        except GrotopError as e:
            print(f"Error checking '{name}': {e}", file=sys.stderr)
            return 2

    match output:
        case "json":
            print(json.dumps([report_json(r) for r in reports], indent=2, ensure_ascii=False))
        case "markdown":
            print("\n".join(render_markdown(r) for r in reports))
        case _:
            print("\n\n".join(format_report(r) for r in reports))

    return 0 if all(r.passed for r in reports) else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="grotop",
        description="Check the Grothendieck topology / subtopos correspondence on finite sites.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--max-enumeration",
        type=int,
        help="Override GROTOP_MAX_ENUMERATION for this run.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Command: sites
    subparsers.add_parser("sites", help="List the built-in sites.")

    # Command: check
    check_parser = subparsers.add_parser(
        "check",
        help="Audit one or more built-in sites.",
    )
    check_parser.add_argument(
        "sites",
        nargs="*",
        metavar="SITE",
        help="Site name(s). Default: all.",
    )
    format_group = check_parser.add_mutually_exclusive_group()
    format_group.add_argument("--json", action="store_const", dest="output", const="json")
    format_group.add_argument("--markdown", action="store_const", dest="output", const="markdown")
    check_parser.add_argument(
        "--lemmas",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Also derive each covering axiom from the relation lemmas (default: on).",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.max_enumeration is not None:
        current = get_settings()
        set_settings(Settings(max_enumeration=args.max_enumeration, max_section_size=current.max_section_size))

    match args.command:
        case "sites":
            return handle_sites()
        case "check":
            return handle_check(
                args.sites or list(ALL_SITES),
                output=args.output or "text",
                lemmas=args.lemmas,
            )
        case None:
            parser.print_help()
            return 1
        case _:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            parser.print_help()
            return 1


if __name__ == "__main__":
    sys.exit(main())
