"""Command-line interface for pagepull."""

import argparse
import asyncio
import os
import sys
from typing import Optional

# Check if --doctor flag is present before checking dependencies
if "--doctor" in sys.argv:
    from .doctor import run_doctor

    sys.exit(run_doctor())

# Verify core dependencies
try:
    import bs4  # noqa: F401
    import html2text  # noqa: F401
    import playwright  # noqa: F401
    import readability  # noqa: F401
    import rich  # noqa: F401
except ImportError as e:
    print(f"\nERROR: Missing required dependency: {e.name}", file=sys.stderr)
    print("\nPagepull requires all core dependencies to be installed.", file=sys.stderr)
    print("\nRecommended fixes:", file=sys.stderr)
    print("  1. For pipx users: pipx reinstall pagepull --force", file=sys.stderr)
    print("  2. For pip users: pip install --upgrade --force-reinstall pagepull", file=sys.stderr)
    print("  3. For development: pip install -e .[dev]", file=sys.stderr)
    print("\nTo diagnose issues, run: pagepull --doctor", file=sys.stderr)
    sys.exit(1)

from rich.console import Console

from . import __version__
from .core.fetcher import PagePuller
from .exceptions import InvalidRequestError
from .logging_config import resolve_level, setup_logging
from .models.config import OutputFormat, WaitCondition, load_field_specs

TIMEOUT_ENV = "PAGEPULL_TIMEOUT"
DEBUG_ENV = "PAGEPULL_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}

FETCH_ONLY_OPTIONS = (
    "output_format",
    "max_length",
    "search",
    "wait_for_navigation",
    "navigation_timeout",
    "disable_media",
)


def _env_timeout() -> Optional[float]:
    value = os.environ.get(TIMEOUT_ENV, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise InvalidRequestError(f"{TIMEOUT_ENV} must be a number of seconds, got {value!r}") from None


def _env_debug() -> bool:
    return os.environ.get(DEBUG_ENV, "").strip().lower() in _TRUTHY


def _add_browser_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand."""
    group = parser.add_argument_group("browser settings")
    group.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        metavar="SECONDS",
        help=f"Page load timeout (default: ${TIMEOUT_ENV} or 30)",
    )
    group.add_argument(
        "--wait-until",
        choices=[condition.value for condition in WaitCondition],
        default=None,
        help="When navigation is considered complete (default: networkidle)",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help=f"Show the browser window (default: ${DEBUG_ENV})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="pagepull",
        description="Fetch rendered web pages and reduce them to Markdown, fields or links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch a page as Markdown
  pagepull fetch https://example.com/article

  # Only keep lines mentioning prices, at most 2000 characters
  pagepull fetch https://shop.example.com --search "price|\\$" --max-length 2000

  # Extract fields (inline JSON or a .json/.yaml file)
  pagepull extract shop.example.com/p/1 --fields '{"title": {"selector": "h1"}}'

  # List links, second page, only documentation
  pagepull links https://example.com --offset 100 --search docs
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Run diagnostic checks",
    )

    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose logging",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log errors",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # fetch
    fetch = subparsers.add_parser("fetch", help="Fetch a page as Markdown or cleaned HTML")
    fetch.add_argument("url", help="URL to fetch")
    _add_browser_options(fetch)
    content_group = fetch.add_argument_group("content settings")
    content_group.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=[fmt.value for fmt in OutputFormat],
        default=None,
        help="Output format (default: markdown)",
    )
    content_group.add_argument(
        "--max-length",
        type=int,
        default=None,
        metavar="CHARS",
        help="Truncate output to this many characters (default: no limit)",
    )
    content_group.add_argument(
        "--search",
        "-s",
        default=None,
        metavar="PATTERN",
        help="Only keep Markdown lines matching this regex (case-insensitive)",
    )
    content_group.add_argument(
        "--wait-for-navigation",
        action="store_true",
        default=None,
        help="Wait for a further navigation after load (client-side redirects, bot checks)",
    )
    content_group.add_argument(
        "--navigation-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="How long to wait for that navigation (default: 10)",
    )
    content_group.add_argument(
        "--allow-media",
        action="store_false",
        dest="disable_media",
        default=None,
        help="Load images, stylesheets, fonts and media",
    )

    # extract
    extract = subparsers.add_parser("extract", help="Extract named fields with CSS selectors")
    extract.add_argument("url", help="URL to fetch (https:// is assumed)")
    extract.add_argument(
        "--fields",
        "-F",
        required=True,
        metavar="JSON_OR_FILE",
        help="Field specs as an inline JSON object or a .json/.yaml file",
    )
    _add_browser_options(extract)

    # links
    links = subparsers.add_parser("links", help="List navigable links, 100 per page")
    links.add_argument("url", help="URL to fetch (https:// is assumed)")
    links.add_argument(
        "--offset",
        type=int,
        default=0,
        help="Index of the first link to return (default: 0)",
    )
    links.add_argument(
        "--search",
        "-s",
        default=None,
        metavar="PATTERN",
        help="Only keep links whose URL or title matches this regex",
    )
    _add_browser_options(links)

    return parser


def _option_kwargs(args: argparse.Namespace) -> dict:
    """Collect FetchOptions arguments; None values fall back to model defaults."""
    timeout = args.timeout if args.timeout is not None else _env_timeout()
    debug = args.debug if args.debug is not None else _env_debug()
    kwargs: dict = {
        "timeout": timeout,
        "wait_until": args.wait_until,
        "debug": debug,
    }
    if args.command == "fetch":
        for name in FETCH_ONLY_OPTIONS:
            kwargs[name] = getattr(args, name)
    return kwargs


async def _run_command(args: argparse.Namespace, puller: PagePuller) -> tuple[str, bool]:
    """Run one subcommand, returning (output, success)."""
    if args.command == "fetch":
        result = await puller.fetch_url(args.url, **_option_kwargs(args))
        return result.content, result.success

    if args.command == "extract":
        try:
            fields = load_field_specs(args.fields)
        except (OSError, ValueError) as e:
            raise InvalidRequestError(str(e)) from e
        result = await puller.extract_fields_result(args.url, fields, **_option_kwargs(args))
    else:
        result = await puller.get_links_result(
            args.url, offset=args.offset, search=args.search, **_option_kwargs(args)
        )
    return result.content, result.success


def run_command(args: argparse.Namespace, puller: Optional[PagePuller] = None) -> int:
    """Run the selected subcommand and print its output to stdout."""
    console = Console(stderr=True)
    puller = puller or PagePuller()

    try:
        output, success = asyncio.run(_run_command(args, puller))
    except InvalidRequestError as e:
        console.print(f"[red]Invalid request:[/red] {e}")
        return 2
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    print(output)
    return 0 if success else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.doctor:
        from .doctor import run_doctor

        return run_doctor()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=resolve_level(verbose=args.verbose, quiet=args.quiet))
    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
