"""
Command Line Interface

Entry point for running searches from the command line.

Usage:
    python -m gmaps_scraper location "coffee" "Austin, TX"
    python -m gmaps_scraper zipcode "dentists" 90401 --state CA -n 20
    python -m gmaps_scraper radius "pizza" 40.7128 -74.0060 --radius 2000 -f csv
    python -m gmaps_scraper serve --port 8000
"""

import argparse
import asyncio
import sys

from .config import DEFAULT_CLI_MAX_RESULTS, DEFAULT_MAX_CONCURRENCY, DEFAULT_RADIUS_METERS, MAX_CONCURRENCY_LIMIT
from .config_manager import ScraperConfig
from .events import ConsoleEventSink
from .exceptions import ConfigurationError
from .export import EXPORT_FORMATS, export_results
from .models import SearchRequest


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-n", "--max-results",
        type=int,
        default=DEFAULT_CLI_MAX_RESULTS,
        help=f"Maximum number of businesses (default: {DEFAULT_CLI_MAX_RESULTS})"
    )
    parser.add_argument(
        "-f", "--format",
        choices=EXPORT_FORMATS,
        default="both",
        help="Export format (default: both)"
    )
    parser.add_argument(
        "-o", "--output",
        help="Output base filename (default: google_maps_results_<timestamp>)"
    )
    parser.add_argument(
        "-c", "--concurrency",
        type=int,
        default=None,
        help=f"Detail pages fetched in parallel (default: {DEFAULT_MAX_CONCURRENCY}, max: {MAX_CONCURRENCY_LIMIT})"
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress output"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmaps_scraper",
        description="Google Maps Business Scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m gmaps_scraper location "coffee" "Austin, TX"
  python -m gmaps_scraper zipcode "dentists" 90401 --state CA --country USA
  python -m gmaps_scraper radius "pizza" 40.7128 -74.0060 --radius 2000
  python -m gmaps_scraper location "hotels" "Lisbon" -n 20 -f json -o lisbon_hotels
  python -m gmaps_scraper serve --port 8000
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    location = subparsers.add_parser("location", help="Search in a named place")
    location.add_argument("query", help="What to search for (e.g., 'coffee')")
    location.add_argument("location", help="Where to search (e.g., 'Austin, TX')")
    _add_common_arguments(location)

    zipcode = subparsers.add_parser("zipcode", help="Search within a postal code")
    zipcode.add_argument("query", help="What to search for")
    zipcode.add_argument("zip_code", help="Postal code (e.g., '90401')")
    zipcode.add_argument("--state", help="State, to disambiguate the postal code")
    zipcode.add_argument("--country", help="Country name, to disambiguate the postal code")
    _add_common_arguments(zipcode)

    radius = subparsers.add_parser("radius", help="Search within a radius of a point")
    radius.add_argument("query", help="What to search for")
    radius.add_argument("latitude", type=float, help="Center latitude")
    radius.add_argument("longitude", type=float, help="Center longitude")
    radius.add_argument(
        "--radius",
        type=int,
        default=DEFAULT_RADIUS_METERS,
        help=f"Radius in meters (default: {DEFAULT_RADIUS_METERS})"
    )
    _add_common_arguments(radius)

    serve = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    return parser


def request_from_args(args) -> SearchRequest:
    """Build a SearchRequest from parsed subcommand arguments."""
    if args.command == "location":
        return SearchRequest.by_location(args.query, args.location, args.max_results)
    if args.command == "zipcode":
        return SearchRequest.by_zipcode(args.query, args.zip_code, args.state, args.country, args.max_results)
    return SearchRequest.by_radius(args.query, args.latitude, args.longitude, args.radius, args.max_results)


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from .server import run_server
        run_server(host=args.host, port=args.port)
        return 0

    # Imported here so `serve --help` and argument errors stay fast
    from .scraper import MapsScraper

    try:
        scraper_config = ScraperConfig(
            headless=not args.headful,
            max_concurrency=args.concurrency,
            verbose=not args.quiet,
        )
        request = request_from_args(args)
        request.validate()

        scraper = MapsScraper(scraper_config, events=ConsoleEventSink(verbose=not args.quiet))
        result = asyncio.run(scraper.search(request))

        if result.statistics.get("error"):
            print(f"\nError: {result.statistics['error']}", file=sys.stderr)
            return 1

        if result.count == 0:
            if not args.quiet:
                print("\nNo businesses found. Nothing exported.")
            return 0

        paths = export_results(result.records, args.format, args.output, scraper_config.results_dir)

        if not args.quiet:
            print(f"\n{'=' * 70}")
            print("SEARCH COMPLETE")
            print("=" * 70)
            print(f"\n  Total businesses: {result.count}")
            print(f"  Candidates inspected: {result.statistics.get('inspected', 0)}")
            print(f"  Time: {result.statistics.get('elapsed_seconds', 0)}s")
            for path in paths:
                print(f"  Saved: {path}")

        return 0

    except ConfigurationError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
