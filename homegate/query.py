import json
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Tuple

from homegate.errors import InvalidQueryError
from homegate.models import Category, OfferType

Number = int | float

SEARCH_PATH = "/search/listings"
MAX_RADIUS = 50000  # meters, exclusive
DEFAULT_PAGE_SIZE = 20

_LOCALE_TEMPLATE = {"attachments": True, "text": {"title": True}, "urls": {"type": True}}

# Field selection the Android client sends; the backend only returns what is flagged here.
RESULT_TEMPLATE: Dict[str, Any] = {
    "id": True,
    "listerBranding": True,
    "listing": {
        "address": {
            "country": True,
            "geoCoordinates": {"latitude": True, "longitude": True},
            "locality": True,
            "postOfficeBoxNumber": True,
            "postalCode": True,
            "region": True,
            "street": True,
            "streetAddition": True,
        },
        "categories": True,
        "characteristics": {
            "livingSpace": True,
            "lotSize": True,
            "numberOfRooms": True,
            "singleFloorSpace": True,
            "totalFloorSpace": True,
        },
        "id": True,
        "lister": {"logoUrl": True, "phone": True},
        "localization": {
            "de": _LOCALE_TEMPLATE,
            "en": _LOCALE_TEMPLATE,
            "fr": _LOCALE_TEMPLATE,
            "it": _LOCALE_TEMPLATE,
            "primary": True,
        },
        "offerType": True,
        "prices": True,
    },
    "listingType": True,
    "remoteViewing": True,
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


@dataclass(frozen=True)
class NumericRange:
    """Inclusive range filter. A missing bound means unbounded on that side."""
    from_: Number | None = None
    to: Number | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.from_ is None and self.to is None

    def validate(self, name: str, integral: bool = False) -> List[Tuple[str, str]]:
        violations = []
        for bound, value in (("from", self.from_), ("to", self.to)):
            if value is None:
                continue
            if not _is_number(value) or (integral and not isinstance(value, int)):
                kind = "an integer" if integral else "a finite number"
                violations.append((f"{name}.{bound}", f"must be {kind}, got {value!r}"))
            elif value < 0:
                violations.append((f"{name}.{bound}", f"must not be negative, got {value}"))
        if not violations and self.from_ is not None and self.to is not None and self.from_ > self.to:
            violations.append(
                (name, f"'from' ({self.from_}) must be less than or equal to 'to' ({self.to})"))
        return violations

    def to_payload(self) -> Dict[str, Number]:
        payload = {}
        if self.from_ is not None:
            payload["from"] = self.from_
        if self.to is not None:
            payload["to"] = self.to
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Number] | None) -> "NumericRange":
        if not payload:
            return cls()
        return cls(from_=payload.get("from"), to=payload.get("to"))


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    radius: int  # meters

    def validate(self) -> List[Tuple[str, str]]:
        violations = []
        if not _is_number(self.latitude) or not -90 <= self.latitude <= 90:
            violations.append(("location.latitude",
                               f"must be between -90 and 90, got {self.latitude!r}"))
        if not _is_number(self.longitude) or not -180 <= self.longitude <= 180:
            violations.append(("location.longitude",
                               f"must be between -180 and 180, got {self.longitude!r}"))
        if not isinstance(self.radius, int) or isinstance(self.radius, bool):
            violations.append(("location.radius", f"must be an integer, got {self.radius!r}"))
        elif not 0 <= self.radius < MAX_RADIUS:
            violations.append(("location.radius",
                               f"must be between 0 and {MAX_RADIUS - 1} meters, got {self.radius}"))
        return violations

    def to_payload(self) -> Dict[str, Number]:
        return {"latitude": self.latitude, "longitude": self.longitude, "radius": self.radius}


ZURICH = Location(latitude=47.359856, longitude=8.541819, radius=622)


def _unique(categories: Iterable[Category]) -> Tuple[Category, ...]:
    # keeps the order in which categories were assigned
    items = tuple(categories)
    if not all(isinstance(c, Category) for c in items):
        return items  # left for validate() to report
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class SearchQuery:
    location: Location = ZURICH
    monthly_rent: NumericRange = field(default_factory=NumericRange)
    living_space: NumericRange = field(default_factory=NumericRange)
    number_of_rooms: NumericRange = field(default_factory=NumericRange)
    categories: Tuple[Category, ...] = ()
    exclude_categories: Tuple[Category, ...] = ()
    offer_type: OfferType = OfferType.RENT
    page_size: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    sort_by: str = "listingType"
    sort_direction: str = "desc"

    def __post_init__(self):
        object.__setattr__(self, "categories", _unique(self.categories))
        object.__setattr__(self, "exclude_categories", _unique(self.exclude_categories))

    def validate(self) -> None:
        """Raise InvalidQueryError listing every violated field. Nothing is corrected."""
        violations = []
        violations += self.location.validate()
        violations += self.monthly_rent.validate("monthly_rent", integral=True)
        violations += self.living_space.validate("living_space", integral=True)
        violations += self.number_of_rooms.validate("number_of_rooms")
        for name in ("categories", "exclude_categories"):
            for item in getattr(self, name):
                if not isinstance(item, Category):
                    violations.append((name, f"unknown category {item!r}"))
        if not isinstance(self.offer_type, OfferType):
            violations.append(("offer_type", f"unknown offer type {self.offer_type!r}"))
        if not isinstance(self.page_size, int) or isinstance(self.page_size, bool) or self.page_size <= 0:
            violations.append(("page_size", f"must be a positive integer, got {self.page_size!r}"))
        if not isinstance(self.offset, int) or isinstance(self.offset, bool) or self.offset < 0:
            violations.append(("offset", f"must be a non-negative integer, got {self.offset!r}"))
        if self.sort_direction not in ("asc", "desc"):
            violations.append(("sort_direction", f"must be 'asc' or 'desc', got {self.sort_direction!r}"))
        if violations:
            raise InvalidQueryError(violations)

    def next_page(self) -> "SearchQuery":
        return replace(self, offset=self.offset + self.page_size)

    def for_page(self, page: int) -> "SearchQuery":
        """Query for a 1-indexed page number."""
        if page < 1:
            raise InvalidQueryError([("page", f"must be at least 1, got {page}")])
        return replace(self, offset=(page - 1) * self.page_size)

    def to_payload(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {
            "location": self.location.to_payload(),
            "offerType": self.offer_type.value,
        }
        if self.categories:
            query["categories"] = [c.value for c in self.categories]
        if self.exclude_categories:
            query["excludeCategories"] = [c.value for c in self.exclude_categories]
        ranges = (("monthlyRent", self.monthly_rent),
                  ("livingSpace", self.living_space),
                  ("numberOfRooms", self.number_of_rooms))
        for key, value in ranges:
            if not value.is_unbounded:
                query[key] = value.to_payload()

        return {
            "from": self.offset,
            "size": self.page_size,
            "sortBy": self.sort_by,
            "sortDirection": self.sort_direction,
            "trackTotalHits": True,
            "query": query,
            "resultTemplate": RESULT_TEMPLATE,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SearchQuery":
        query = payload["query"]
        loc = query["location"]
        return cls(
            location=Location(latitude=loc["latitude"], longitude=loc["longitude"], radius=loc["radius"]),
            monthly_rent=NumericRange.from_payload(query.get("monthlyRent")),
            living_space=NumericRange.from_payload(query.get("livingSpace")),
            number_of_rooms=NumericRange.from_payload(query.get("numberOfRooms")),
            categories=tuple(Category(c) for c in query.get("categories", [])),
            exclude_categories=tuple(Category(c) for c in query.get("excludeCategories", [])),
            offer_type=OfferType(query["offerType"]),
            page_size=payload["size"],
            offset=payload["from"],
            sort_by=payload["sortBy"],
            sort_direction=payload["sortDirection"],
        )


def default_search() -> SearchQuery:
    """The default query, with every optional filter spelled out at its no-op value."""
    return SearchQuery(
        location=ZURICH,
        monthly_rent=NumericRange(from_=None, to=None),
        living_space=NumericRange(from_=None, to=None),
        number_of_rooms=NumericRange(from_=None, to=None),
        categories=(),
        exclude_categories=(),
        offer_type=OfferType.RENT,
        page_size=DEFAULT_PAGE_SIZE,
        offset=0,
        sort_by="listingType",
        sort_direction="desc",
    )


def build_search_request(query: SearchQuery) -> Tuple[str, bytes]:
    """Validate the query and return the path and JSON body to POST."""
    query.validate()
    body = json.dumps(query.to_payload(), separators=(",", ":"), allow_nan=False)
    return SEARCH_PATH, body.encode("utf-8")
