from abc import ABC, abstractmethod
from typing import Mapping, Tuple


class Transport(ABC):
    @abstractmethod
    def send(self, method: str, url: str, headers: Mapping[str, str],
             body: bytes | None = None) -> Tuple[int, bytes]:
        """Send one request and return (status code, raw body).

        Raises TransportError on connection or timeout failures. Non-2xx
        statuses are returned, not raised.
        """
