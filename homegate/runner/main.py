import argparse
import json
import sys
from dataclasses import asdict, replace
from enum import Enum
from typing import List, Sequence

from homegate.client import HomegateClient
from homegate.errors import HomegateError, InvalidQueryError
from homegate.models import Category, OfferType
from homegate.query import Location, NumericRange, default_search
from homegate.utils.formatting import format_table, page_summary
from homegate.utils.logger import setup_logging


def _categories(value: List[str] | None) -> tuple:
    if not value:
        return ()
    names = [name for chunk in value for name in chunk.split(",") if name.strip()]
    try:
        return tuple(Category.parse(name) for name in names)
    except ValueError as e:
        raise InvalidQueryError([("category", str(e))]) from None


def _json_default(o):
    if isinstance(o, Enum):
        return o.value
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="homegate", description="Search homegate.ch listings")
    parser.add_argument("-v", "--verbose", action="store_true", help="log requests")
    sub = parser.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="search for real estate listings")
    s.add_argument("--lat", type=float, required=True, help="latitude (-90 to 90)")
    s.add_argument("--lon", type=float, required=True, help="longitude (-180 to 180)")
    s.add_argument("--radius", type=int, default=5000, help="search radius in meters (max 49999)")
    s.add_argument("--min-price", type=int, help="minimum monthly rent in CHF")
    s.add_argument("--max-price", type=int, help="maximum monthly rent in CHF")
    s.add_argument("--min-rooms", type=float, help="minimum number of rooms (2.5 is valid)")
    s.add_argument("--max-rooms", type=float)
    s.add_argument("--min-space", type=int, help="minimum living space in m2")
    s.add_argument("--max-space", type=int)
    s.add_argument("--category", action="append", help="e.g. APARTMENT,STUDIO or attic-flat")
    s.add_argument("--exclude-category", action="append")
    s.add_argument("--offer-type", default="rent", choices=["rent", "buy"])
    s.add_argument("--page", type=int, default=1, help="1-indexed page number")
    s.add_argument("--page-size", type=int, default=20)
    s.add_argument("--all", action="store_true", help="walk every page instead of one")
    s.add_argument("--json", action="store_true", help="print JSON instead of a table")

    a = sub.add_parser("areas", help="list the geo areas known to the backend")
    a.add_argument("--language", default="en", choices=["de", "en", "fr", "it"])
    return parser


def run_search(args, client: HomegateClient) -> int:
    query = replace(
        default_search(),
        location=Location(latitude=args.lat, longitude=args.lon, radius=args.radius),
        monthly_rent=NumericRange(from_=args.min_price, to=args.max_price),
        living_space=NumericRange(from_=args.min_space, to=args.max_space),
        number_of_rooms=NumericRange(from_=args.min_rooms, to=args.max_rooms),
        categories=_categories(args.category),
        exclude_categories=_categories(args.exclude_category),
        offer_type=OfferType(args.offer_type.upper()),
        page_size=args.page_size,
    ).for_page(args.page)

    if args.all:
        results = list(client.iter_results(query))
        total = len(results)
        response = None
    else:
        response = client.search(query)
        results = list(response.results)
        total = response.total

    if args.json:
        payload = asdict(response) if response is not None else {"total": total, "results": [asdict(r) for r in results]}
        print(json.dumps(payload, default=_json_default, ensure_ascii=False, indent=2))
        return 0

    print(format_table(results))
    if args.all:
        print(f"{total} results")
    else:
        print(page_summary(total, len(results), args.page, args.page_size))
    return 0


def run_areas(args, client: HomegateClient) -> int:
    for area in client.get_areas(args.language):
        print(f"{area.name}\t{area.type_label}")
    return 0


def main(argv: Sequence[str] | None = None, client: HomegateClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        setup_logging()

    try:
        client = client or HomegateClient()
        if args.command == "search":
            return run_search(args, client)
        return run_areas(args, client)
    except HomegateError as e:
        print(f"Error ({e.layer}): {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
