"""
Command-line interface for integrated.

Provides a quick smoke check of a running site without writing a test.
"""

import argparse
import sys

from .backends import RemoteSession, StatelessCrawler
from .config import load_config
from .emulator import Emulator
from .exceptions import IntegratedError
from .log import configure_logging


def check_command(args) -> int:
    """Visit a URL and run the requested assertions."""
    try:
        config = load_config(args.config)
    except IntegratedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.backend == "remote":
        backend = RemoteSession(config)
    else:
        backend = StatelessCrawler(config)

    print(f"Checking {args.url} ({backend.name})")

    browser = Emulator(backend, config)
    try:
        browser.visit(args.url)
        print(f"  loaded {browser.current_url} [{browser.status_code}]")

        for text in args.see:
            browser.see(text)
            print(f"  saw '{text}'")

        if args.page_is:
            browser.see_page_is(args.page_is)
            print(f"  on page {args.page_is}")
    except (AssertionError, IntegratedError) as e:
        print(f"FAIL: {e}", file=sys.stderr)
        return 1
    finally:
        browser.teardown()

    print("OK")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="integrated - fluent integration testing with a simulated browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Make sure the home page loads
  integrated check http://localhost:8888

  # Check for text and the final URL after redirects
  integrated check /old --see "Welcome" --page-is /new

  # Use a real browser through WebDriver
  integrated check http://localhost:8888 --backend remote --config integrated.json
        """,
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Log each request")
    parser.add_argument("--debug", action="store_true", help="Log everything, including redirects")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Visit a page and assert on what comes back")
    check_parser.add_argument("url", help="URL or path to visit (paths are joined onto baseUrl)")
    check_parser.add_argument(
        "--see",
        action="append",
        default=[],
        metavar="TEXT",
        help="Text (or regular expression) that must appear on the page; repeatable",
    )
    check_parser.add_argument("--page-is", help="Path or URL the browser must end up on")
    check_parser.add_argument(
        "--backend",
        choices=["crawler", "remote"],
        default="crawler",
        help="Backend to use (default: crawler)",
    )
    check_parser.add_argument(
        "--config",
        default="integrated.json",
        help="Configuration file (default: integrated.json)",
    )
    check_parser.set_defaults(func=check_command)

    args = parser.parse_args(argv)

    if args.debug:
        configure_logging("debug")
    elif args.verbose:
        configure_logging("info")
    else:
        configure_logging("warning")

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
