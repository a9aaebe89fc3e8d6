import json
from dataclasses import FrozenInstanceError, replace

import pytest

from homegate.errors import InvalidQueryError
from homegate.models import Category, OfferType
from homegate.query import (RESULT_TEMPLATE, SEARCH_PATH, Location,
                            NumericRange, SearchQuery, build_search_request,
                            default_search)

ZURICH_EAST = Location(47.36667, 8.55, 1000)


def test_default_query_is_valid_and_sendable():
    query = default_search()
    query.validate()

    assert query.page_size == 20
    assert query.offset == 0
    assert query.monthly_rent.is_unbounded
    assert query.living_space.is_unbounded
    assert query.number_of_rooms.is_unbounded
    assert query.categories == ()
    assert query == SearchQuery()


def test_default_payload_shape():
    payload = default_search().to_payload()

    assert payload["from"] == 0
    assert payload["size"] == 20
    assert payload["sortBy"] == "listingType"
    assert payload["sortDirection"] == "desc"
    assert payload["trackTotalHits"] is True
    assert payload["resultTemplate"] == RESULT_TEMPLATE
    assert set(payload["query"]) == {"location", "offerType"}
    assert payload["query"]["offerType"] == "RENT"


def test_unbounded_rent_is_omitted_not_null():
    payload = SearchQuery(monthly_rent=NumericRange(from_=None, to=None)).to_payload()
    assert "monthlyRent" not in payload["query"]


def test_half_open_range_serializes_only_present_bound():
    payload = SearchQuery(living_space=NumericRange(from_=60)).to_payload()
    assert payload["query"]["livingSpace"] == {"from": 60}


def test_end_to_end_query_payload():
    query = SearchQuery(location=ZURICH_EAST,
                        monthly_rent=NumericRange(1000, 2500),
                        number_of_rooms=NumericRange(3, 4))
    path, body = build_search_request(query)
    q = json.loads(body)["query"]

    assert path == SEARCH_PATH
    assert q["location"] == {"latitude": 47.36667, "longitude": 8.55, "radius": 1000}
    assert q["monthlyRent"] == {"from": 1000, "to": 2500}
    assert q["numberOfRooms"] == {"from": 3, "to": 4}
    assert "livingSpace" not in q
    assert "categories" not in q
    assert "excludeCategories" not in q


def test_payload_round_trips_field_by_field():
    query = SearchQuery(
        location=ZURICH_EAST,
        monthly_rent=NumericRange(1000, 2500),
        living_space=NumericRange(from_=60),
        number_of_rooms=NumericRange(2.5, 4.5),
        categories=(Category.LOFT, Category.APARTMENT),
        exclude_categories=(Category.FURNISHED_FLAT,),
        offer_type=OfferType.BUY,
        page_size=50,
        offset=100,
    )
    _, body = build_search_request(query)
    assert SearchQuery.from_payload(json.loads(body)) == query


def test_categories_keep_assignment_order_without_duplicates():
    query = SearchQuery(categories=[Category.VILLA, Category.APARTMENT, Category.VILLA, Category.CHALET])

    assert query.categories == (Category.VILLA, Category.APARTMENT, Category.CHALET)
    assert query.to_payload()["query"]["categories"] == ["VILLA", "APARTMENT", "CHALET"]


@pytest.mark.parametrize("category,code", [
    (Category.ATTIC_FLAT, "ATTIC_FLAT"),
    (Category.BIFAMILIAR_HOUSE, "BIFAMILIAR_HOUSE"),
    (Category.CELLAR_COMPARTMENT, "CELLAR_COMPARTMENT"),
    (Category.SINGLE_ROOM, "SINGLE_ROOM"),
])
def test_category_codes(category, code):
    assert category.value == code
    assert Category(code) is category


def test_category_parse_accepts_cli_spelling():
    assert Category.parse("attic-flat") is Category.ATTIC_FLAT
    assert Category.parse(" Studio ") is Category.STUDIO
    with pytest.raises(ValueError):
        Category.parse("spaceship")


def test_reversed_range_fails_without_swapping():
    query = SearchQuery(monthly_rent=NumericRange(from_=2500, to=1000))
    with pytest.raises(InvalidQueryError) as exc:
        query.validate()

    assert exc.value.field == "monthly_rent"
    assert query.monthly_rent == NumericRange(2500, 1000)


def test_equal_bounds_are_valid():
    SearchQuery(number_of_rooms=NumericRange(3, 3)).validate()


def test_validation_reports_every_violation():
    query = SearchQuery(location=Location(91.0, 200.0, -5), page_size=0, offset=-1)
    with pytest.raises(InvalidQueryError) as exc:
        query.validate()

    fields = [field for field, _ in exc.value.violations]
    assert fields == ["location.latitude", "location.longitude", "location.radius", "page_size", "offset"]
    assert exc.value.caller_fault


@pytest.mark.parametrize("radius", [0, 49999])
def test_radius_bounds_accepted(radius):
    SearchQuery(location=Location(47.0, 8.0, radius)).validate()


def test_radius_too_large():
    with pytest.raises(InvalidQueryError) as exc:
        SearchQuery(location=Location(47.0, 8.0, 50000)).validate()
    assert exc.value.field == "location.radius"


def test_integer_ranges_reject_fractions():
    with pytest.raises(InvalidQueryError) as exc:
        SearchQuery(monthly_rent=NumericRange(from_=999.5)).validate()
    assert exc.value.field == "monthly_rent.from"


def test_rooms_accept_fractions():
    SearchQuery(number_of_rooms=NumericRange(2.5, 3.5)).validate()


@pytest.mark.parametrize("rooms,field", [
    (NumericRange(float("nan"), 4), "number_of_rooms.from"),
    (NumericRange(2, float("inf")), "number_of_rooms.to"),
    (NumericRange(float("-inf"), None), "number_of_rooms.from"),
])
def test_non_finite_bounds_are_rejected_before_sending(rooms, field):
    with pytest.raises(InvalidQueryError) as exc:
        build_search_request(SearchQuery(number_of_rooms=rooms))
    assert exc.value.field == field


def test_non_finite_location_is_rejected():
    with pytest.raises(InvalidQueryError) as exc:
        SearchQuery(location=Location(float("nan"), 8.0, 1000)).validate()
    assert exc.value.field == "location.latitude"


def test_unhashable_category_is_a_query_error():
    query = SearchQuery(categories=(Category.LOFT, ["STUDIO"]))
    with pytest.raises(InvalidQueryError) as exc:
        query.validate()
    assert exc.value.field == "categories"


def test_unknown_category_is_reported():
    with pytest.raises(InvalidQueryError) as exc:
        SearchQuery(categories=("APARTMENT",)).validate()
    assert exc.value.field == "categories"


def test_build_request_validates_first():
    with pytest.raises(InvalidQueryError):
        build_search_request(SearchQuery(page_size=-1))


def test_next_page_advances_by_page_size():
    query = SearchQuery(page_size=25)
    assert query.next_page().offset == 25
    assert query.next_page().next_page().offset == 50
    assert query.offset == 0


def test_for_page_is_one_indexed():
    query = SearchQuery(page_size=20)
    assert query.for_page(1).offset == 0
    assert query.for_page(3).offset == 40
    with pytest.raises(InvalidQueryError):
        query.for_page(0)


def test_query_is_immutable():
    query = default_search()
    with pytest.raises(FrozenInstanceError):
        query.offset = 20
    assert replace(query, offset=20).offset == 20
