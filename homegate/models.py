from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Category(Enum):
    # apartments
    APARTMENT = "APARTMENT"
    FLAT = "FLAT"
    STUDIO = "STUDIO"
    LOFT = "LOFT"
    MAISONETTE = "MAISONETTE"
    DUPLEX = "DUPLEX"
    ATTIC_FLAT = "ATTIC_FLAT"
    ROOF_FLAT = "ROOF_FLAT"
    TERRACE_FLAT = "TERRACE_FLAT"
    BACHELOR_FLAT = "BACHELOR_FLAT"
    SINGLE_ROOM = "SINGLE_ROOM"
    FURNISHED_FLAT = "FURNISHED_FLAT"
    ATTIC = "ATTIC"
    # houses
    HOUSE = "HOUSE"
    SINGLE_HOUSE = "SINGLE_HOUSE"
    ROW_HOUSE = "ROW_HOUSE"
    TERRACE_HOUSE = "TERRACE_HOUSE"
    VILLA = "VILLA"
    CHALET = "CHALET"
    RUSTICO = "RUSTICO"
    FARM_HOUSE = "FARM_HOUSE"
    CAVE_HOUSE = "CAVE_HOUSE"
    CASTLE = "CASTLE"
    GRANNY_FLAT = "GRANNY_FLAT"
    BIFAMILIAR_HOUSE = "BIFAMILIAR_HOUSE"
    # other
    HOBBY_ROOM = "HOBBY_ROOM"
    CELLAR_COMPARTMENT = "CELLAR_COMPARTMENT"
    ATTIC_COMPARTMENT = "ATTIC_COMPARTMENT"

    @classmethod
    def parse(cls, text: str) -> "Category":
        """Accepts the backend code as well as CLI spellings like 'attic-flat'."""
        return cls(text.strip().upper().replace("-", "_"))


class OfferType(Enum):
    RENT = "RENT"
    BUY = "BUY"


class ListingType(Enum):
    PREMIUM = "PREMIUM"
    TOP = "TOP"
    STANDARD = "STANDARD"


@dataclass(frozen=True)
class GeoCoords:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Address:
    locality: str
    street: str | None = None
    postal_code: str | None = None    # Swiss format, e.g. "8001"
    region: str | None = None         # canton
    country: str | None = None
    geo_coordinates: GeoCoords | None = None


@dataclass(frozen=True)
class Characteristics:
    number_of_rooms: float               # 2.5 rooms is a valid value
    living_space: int | None = None   # m2
    lot_size: int | None = None
    single_floor_space: int | None = None
    total_floor_space: int | None = None


@dataclass(frozen=True)
class Price:
    interval: str | None = None       # e.g. "MONTH"
    net: int | None = None
    gross: int | None = None
    extra: int | None = None


@dataclass(frozen=True)
class Prices:
    currency: str | None = None
    rent: Price | None = None
    buy: Price | None = None


@dataclass(frozen=True)
class Lister:
    phone: str | None = None
    logo_url: str | None = None


@dataclass(frozen=True)
class Attachment:
    type: str                            # "IMAGE", "DOCUMENT", ...
    url: str
    file: str | None = None


@dataclass(frozen=True)
class LocalizationEntry:
    title: str | None = None
    attachments: Tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class Localization:
    primary: str | None = None
    de: LocalizationEntry | None = None
    en: LocalizationEntry | None = None
    fr: LocalizationEntry | None = None
    it: LocalizationEntry | None = None

    def preferred(self) -> LocalizationEntry | None:
        """Entry in the listing's primary language, falling back to any present one."""
        if self.primary:
            entry = getattr(self, self.primary, None)
            if entry is not None:
                return entry
        return next((e for e in (self.de, self.en, self.fr, self.it) if e is not None), None)


@dataclass(frozen=True)
class Listing:
    id: str
    address: Address
    characteristics: Characteristics
    prices: Prices
    categories: Tuple[Category, ...] | None = None
    offer_type: OfferType | None = None
    lister: Lister | None = None
    localization: Localization | None = None


@dataclass(frozen=True)
class RealEstateResult:
    id: str
    listing: Listing
    listing_type: ListingType | None = None
    remote_viewing: bool | None = None


@dataclass(frozen=True)
class SearchResponse:
    total: int
    results: Tuple[RealEstateResult, ...]
    from_: int | None = None
    size: int | None = None
    max_from: int | None = None       # highest offset the backend will serve


@dataclass(frozen=True)
class GeoArea:
    name: str
    type: str
    type_label: str
