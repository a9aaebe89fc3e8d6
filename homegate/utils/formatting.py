import math
from typing import List, Sequence

from homegate.models import Listing, RealEstateResult

HEADERS = ["ID", "Address", "Rooms", "Space", "Price (CHF)"]
MISSING = "-"


def format_address(li: Listing) -> str:
    a = li.address
    street = a.street or MISSING
    place = " ".join(p for p in (a.postal_code, a.locality) if p)
    return f"{street}, {place}"


def format_rooms(li: Listing) -> str:
    return f"{li.characteristics.number_of_rooms:.1f}"


def format_space(li: Listing) -> str:
    space = li.characteristics.living_space
    return MISSING if space is None else f"{space} m²"


def format_price(li: Listing) -> str:
    # Gross rent first, net rent flagged, then the sale price
    rent, buy = li.prices.rent, li.prices.buy
    if rent is not None:
        if rent.gross is not None:
            return f"{rent.gross}/mo"
        if rent.net is not None:
            return f"{rent.net}/mo (net)"
        return MISSING
    if buy is not None and buy.gross is not None:
        return str(buy.gross)
    return MISSING


def format_row(r: RealEstateResult) -> List[str]:
    li = r.listing
    return [li.id, format_address(li), format_rooms(li), format_space(li), format_price(li)]


def format_table(results: Sequence[RealEstateResult]) -> str:
    rows = [HEADERS] + [format_row(r) for r in results]
    widths = [max(len(row[i]) for row in rows) for i in range(len(HEADERS))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip() for row in rows]
    lines.insert(1, "  ".join("-" * w for w in widths))
    return "\n".join(lines)


def page_summary(total: int, shown: int, page: int, page_size: int) -> str:
    if total <= 0:
        return "No results found"
    total_pages = math.ceil(total / page_size)
    start = (page - 1) * page_size + 1
    end = min(start + shown - 1, total)
    return f"Page {page} of {total_pages} ({start}-{end} of {total} results)"
