import json
from enum import Enum
from typing import Any, Dict, List, Tuple, Type, TypeVar

from homegate.errors import HttpError, SchemaError
from homegate.models import (Address, Attachment, Category, Characteristics,
                             GeoArea, GeoCoords, Lister, Listing, ListingType,
                             Localization, LocalizationEntry, OfferType, Price,
                             Prices, RealEstateResult, SearchResponse)

E = TypeVar("E", bound=Enum)

_MISSING = object()


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _object(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(path, f"expected an object, got {_type_name(value)}")
    return value


def _field(data: Dict[str, Any], key: str, path: str, required: bool) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            raise SchemaError(_join(path, key), "required field is missing")
        return None
    return value


def _str(data, key, path, required=False) -> str | None:
    value = _field(data, key, path, required)
    if value is not None and not isinstance(value, str):
        raise SchemaError(_join(path, key), f"expected a string, got {_type_name(value)}")
    return value


def _int(data, key, path, required=False) -> int | None:
    value = _field(data, key, path, required)
    if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
        raise SchemaError(_join(path, key), f"expected an integer, got {_type_name(value)}")
    return value


def _float(data, key, path, required=False) -> float | None:
    value = _field(data, key, path, required)
    if value is None:
        return None
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise SchemaError(_join(path, key), f"expected a number, got {_type_name(value)}")
    return float(value)


def _bool(data, key, path) -> bool | None:
    value = _field(data, key, path, False)
    if value is not None and not isinstance(value, bool):
        raise SchemaError(_join(path, key), f"expected a boolean, got {_type_name(value)}")
    return value


def _enum(enum: Type[E], value: Any, path: str) -> E:
    try:
        return enum(value)
    except ValueError:
        raise SchemaError(path, f"unknown {enum.__name__} code {value!r}") from None


def _list(data, key, path, required=False) -> List[Any] | None:
    value = _field(data, key, path, required)
    if value is not None and not isinstance(value, list):
        raise SchemaError(_join(path, key), f"expected a list, got {_type_name(value)}")
    return value


def _geo_coords(value: Any, path: str) -> GeoCoords:
    data = _object(value, path)
    return GeoCoords(latitude=_float(data, "latitude", path, required=True),
                     longitude=_float(data, "longitude", path, required=True))


def _address(value: Any, path: str) -> Address:
    data = _object(value, path)
    coords = data.get("geoCoordinates")
    return Address(
        locality=_str(data, "locality", path, required=True),
        street=_str(data, "street", path),
        postal_code=_str(data, "postalCode", path),
        region=_str(data, "region", path),
        country=_str(data, "country", path),
        geo_coordinates=_geo_coords(coords, f"{path}.geoCoordinates") if coords is not None else None,
    )


def _characteristics(value: Any, path: str) -> Characteristics:
    data = _object(value, path)
    return Characteristics(
        number_of_rooms=_float(data, "numberOfRooms", path, required=True),
        living_space=_int(data, "livingSpace", path),
        lot_size=_int(data, "lotSize", path),
        single_floor_space=_int(data, "singleFloorSpace", path),
        total_floor_space=_int(data, "totalFloorSpace", path),
    )


def _price(value: Any, path: str) -> Price:
    data = _object(value, path)
    return Price(
        interval=_str(data, "interval", path),
        net=_int(data, "net", path),
        gross=_int(data, "gross", path),
        extra=_int(data, "extra", path),
    )


def _prices(value: Any, path: str) -> Prices:
    data = _object(value, path)
    rent, buy = data.get("rent"), data.get("buy")
    return Prices(
        currency=_str(data, "currency", path),
        rent=_price(rent, f"{path}.rent") if rent is not None else None,
        buy=_price(buy, f"{path}.buy") if buy is not None else None,
    )


def _lister(value: Any, path: str) -> Lister:
    data = _object(value, path)
    return Lister(phone=_str(data, "phone", path), logo_url=_str(data, "logoUrl", path))


def _localization_entry(value: Any, path: str) -> LocalizationEntry:
    data = _object(value, path)
    text = data.get("text")
    title = _str(_object(text, f"{path}.text"), "title", f"{path}.text") if text is not None else None
    attachments = []
    for i, item in enumerate(_list(data, "attachments", path) or []):
        item_path = f"{path}.attachments[{i}]"
        item = _object(item, item_path)
        attachments.append(Attachment(
            type=_str(item, "type", item_path, required=True),
            url=_str(item, "url", item_path, required=True),
            file=_str(item, "file", item_path),
        ))
    return LocalizationEntry(title=title, attachments=tuple(attachments))


def _localization(value: Any, path: str) -> Localization:
    data = _object(value, path)
    entries = {}
    for lang in ("de", "en", "fr", "it"):
        entry = data.get(lang)
        entries[lang] = _localization_entry(entry, f"{path}.{lang}") if entry is not None else None
    return Localization(primary=_str(data, "primary", path), **entries)


def _identifier(data: Dict[str, Any], path: str) -> str:
    identifier = _str(data, "id", path, required=True)
    if not identifier.strip():
        raise SchemaError(_join(path, "id"), "identifier is empty")
    return identifier


def _listing(value: Any, path: str) -> Listing:
    data = _object(value, path)
    categories = _list(data, "categories", path)
    offer_type = _str(data, "offerType", path)
    lister, localization = data.get("lister"), data.get("localization")
    return Listing(
        id=_identifier(data, path),
        address=_address(_field(data, "address", path, True), f"{path}.address"),
        characteristics=_characteristics(
            _field(data, "characteristics", path, True), f"{path}.characteristics"),
        prices=_prices(_field(data, "prices", path, True), f"{path}.prices"),
        categories=tuple(_enum(Category, c, f"{path}.categories[{i}]") for i, c in enumerate(categories))
        if categories is not None else None,
        offer_type=_enum(OfferType, offer_type, f"{path}.offerType") if offer_type is not None else None,
        lister=_lister(lister, f"{path}.lister") if lister is not None else None,
        localization=_localization(localization, f"{path}.localization") if localization is not None else None,
    )


def _listing_type(value: Any, path: str) -> ListingType | None:
    if value is None:
        return None
    # sent either bare ("TOP") or wrapped ({"type": "TOP"})
    if isinstance(value, dict):
        value = _field(value, "type", path, True)
        path = _join(path, "type")
    return _enum(ListingType, value, path)


def _result(value: Any, path: str) -> RealEstateResult:
    data = _object(value, path)
    return RealEstateResult(
        id=_identifier(data, path),
        listing=_listing(_field(data, "listing", path, True), f"{path}.listing"),
        listing_type=_listing_type(data.get("listingType"), f"{path}.listingType"),
        remote_viewing=_bool(data, "remoteViewing", path),
    )


def _decode(status: int, body: bytes) -> Any:
    if not 200 <= status < 300:
        raise HttpError(status, body)
    try:
        return json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise SchemaError("$", f"body is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaError("$", f"body is not valid JSON: {e.msg} at line {e.lineno} column {e.colno}") from e


def _non_negative(data, key, path="") -> int | None:
    value = _int(data, key, path)
    if value is not None and value < 0:
        raise SchemaError(_join(path, key), f"must not be negative, got {value}")
    return value


def parse_search_response(status: int, body: bytes) -> SearchResponse:
    """Decode a /search/listings answer. Any mismatch fails the whole page."""
    data = _object(_decode(status, body), "$")
    total = _int(data, "total", "", required=True)
    if total < 0:
        raise SchemaError("total", f"must not be negative, got {total}")
    results: Tuple[RealEstateResult, ...] = tuple(
        _result(item, f"results[{i}]") for i, item in enumerate(_list(data, "results", "", required=True)))
    return SearchResponse(
        total=total,
        results=results,
        from_=_non_negative(data, "from"),
        size=_non_negative(data, "size"),
        max_from=_non_negative(data, "maxFrom"),
    )


def parse_geo_areas(status: int, body: bytes) -> List[GeoArea]:
    data = _decode(status, body)
    if not isinstance(data, list):
        raise SchemaError("$", f"expected a list, got {_type_name(data)}")
    areas = []
    for i, item in enumerate(data):
        path = f"[{i}]"
        item = _object(item, path)
        areas.append(GeoArea(
            name=_str(item, "name", path, required=True),
            type=_str(item, "type", path, required=True),
            type_label=_str(item, "typeLabel", path, required=True),
        ))
    return areas
