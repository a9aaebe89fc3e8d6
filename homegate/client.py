from typing import Iterator, List, Tuple
from urllib.parse import urlencode

from homegate.config import HomegateConfig
from homegate.core.parser import parse_geo_areas, parse_search_response
from homegate.core.signer import RequestContext, Signer
from homegate.models import GeoArea, Listing, RealEstateResult, SearchResponse
from homegate.query import (Location, SearchQuery, build_search_request,
                            default_search)
from homegate.transport.base import Transport
from homegate.transport.http import RequestsTransport
from homegate.utils.logger import logger

APPL_JSON = "application/json"


class HomegateClient:
    """Signs, sends and decodes requests against the homegate backend.

    Holds no per-search state; concurrent searches may share one client as
    long as the transport allows it.
    """

    def __init__(self, config: HomegateConfig | None = None,
                 transport: Transport | None = None,
                 signer: Signer | None = None):
        self.config = config or HomegateConfig.from_env()
        self.transport = transport or RequestsTransport(timeout=self.config.timeout)
        self.signer = signer or Signer.from_config(self.config)

    def _send(self, method: str, path: str, body: bytes | None = None) -> Tuple[int, bytes]:
        headers = self.signer.sign(RequestContext(method=method, path=path.split("?", 1)[0], body=body or b""))
        headers["Accept"] = APPL_JSON
        if body is not None:
            headers["Content-Type"] = APPL_JSON
        return self.transport.send(method, self.config.url(path), headers, body)

    def search(self, query: SearchQuery | None = None) -> SearchResponse:
        """Fetch the single page of results described by ``query``."""
        query = query or default_search()
        path, body = build_search_request(query)
        status, raw = self._send("POST", path, body)
        response = parse_search_response(status, raw)
        logger.info(f"Search at offset {query.offset} returned {len(response.results)} "
                    f"of {response.total} results")
        return response

    def iter_results(self, query: SearchQuery | None = None) -> Iterator[RealEstateResult]:
        """Lazily walk every page of ``query``.

        Pages are requested only when the previous one is used up. The latest
        reported ``total`` decides whether another page is fetched, since the
        dataset may change while iterating.
        """
        query = query or default_search()
        page = self.search(query)
        while True:
            yield from page.results
            next_query = query.next_page()
            if not page.results or next_query.offset >= page.total:
                return
            if page.max_from is not None and next_query.offset > page.max_from:
                logger.info(f"Stopping at offset {next_query.offset}, backend serves up to {page.max_from}")
                return
            previous_total = page.total
            query = next_query
            page = self.search(query)
            if page.total != previous_total:
                logger.warning(f"Result total changed from {previous_total} to {page.total} while paginating")

    def iter_listings(self, query: SearchQuery | None = None) -> Iterator[Listing]:
        for result in self.iter_results(query):
            yield result.listing

    def get_areas(self, language: str = "en") -> List[GeoArea]:
        status, raw = self._send("GET", f"/rs/geo-areas?{urlencode({'lan': language})}")
        return parse_geo_areas(status, raw)


def search(location: Location, client: HomegateClient | None = None) -> SearchResponse:
    """First page of the default search moved to ``location``."""
    client = client or HomegateClient()
    return client.search(SearchQuery(location=location))
