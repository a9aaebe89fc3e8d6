from typing import Mapping, Tuple

import requests

from homegate import config
from homegate.errors import TransportError
from homegate.transport.base import Transport
from homegate.utils.logger import logger


class RequestsTransport(Transport):
    def __init__(self, session: requests.Session | None = None, timeout: float = config.REQUEST_TIMEOUT):
        # Reuse a session for keep-alive + connection pooling
        self._session = session or requests.Session()
        self.timeout = timeout

    def send(self, method: str, url: str, headers: Mapping[str, str],
             body: bytes | None = None) -> Tuple[int, bytes]:
        logger.info(f"{method} {url}")
        try:
            resp = self._session.request(method, url, headers=dict(headers), data=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        logger.debug(f"{method} {url} -> {resp.status_code} ({len(resp.content)} bytes)")
        return resp.status_code, resp.content

    def close(self) -> None:
        self._session.close()
