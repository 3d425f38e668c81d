# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from domain.request import Request


@dataclass(frozen=True)
class HttpResponse:
    status: int
    url: str
    headers: Dict[str, str]
    content: bytes = b""


@dataclass
class RequesterSettings:
    proxy: Optional[str] = None
    user_agent: Optional[str] = None
    compression: bool = True
    timeout_sec: Optional[float] = None


@dataclass(frozen=True)
class PendingRequest:
    """
    A request built by a requester and not yet sent.

    ``prepared`` is whatever the transport needs to send it later; only the
    requester that built it knows its shape.
    """
    request: Request
    prepared: Any = None
    options: Dict[str, Any] = field(default_factory=dict)


class HttpRequester(ABC):
    """
    Transport boundary. Owns transport settings and the cookie store.

    ``send`` raises ``RequestTimeout`` when the deadline passes and
    ``TransportError`` for any other failure; any received response is
    returned whatever its status.
    """

    def __init__(self, settings: Optional[RequesterSettings] = None):
        self.settings = settings or RequesterSettings()

    @abstractmethod
    def build(self, request: Request) -> PendingRequest:
        ...

    @abstractmethod
    def send(self, pending: PendingRequest) -> HttpResponse:
        ...

    @abstractmethod
    def snapshot_cookies(self) -> List[Dict[str, object]]:
        ...

    def close(self) -> None:
        """Release transport resources. Cookies stay readable afterwards."""
        return None
