# domain/context.py
from __future__ import annotations

import codecs
import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Mapping, MutableMapping, Optional

from bs4 import BeautifulSoup
from pydantic import TypeAdapter, ValidationError

from domain.exceptions import BodyDecodeError, RequestAlreadySent
from domain.request import Request

if TYPE_CHECKING:
    from application.ports.http_client import HttpRequester, PendingRequest


_CHARSET_RE = re.compile(r"charset\s*=\s*([^\s;]+)", re.I)


def _charset_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    # header names are case-insensitive on the wire
    ctype = next((v for k, v in headers.items() if k.lower() == "content-type"), "") or ""
    m = _CHARSET_RE.search(ctype)
    if not m:
        return None
    enc = m.group(1).strip().strip('"').strip("'")
    try:
        return codecs.lookup(enc).name
    except LookupError:
        return None


@dataclass
class Context:
    """
    Record of one step execution, handed to the step's callbacks.

    Created by the Bot for a single ``execute`` call and returned to the
    caller on success. The Bot records timing and the response; only step
    callbacks set the next-step hint.
    """
    request: Request
    current_step: Optional[str] = None
    http_requester: Optional["HttpRequester"] = None
    pending: Optional["PendingRequest"] = None
    response: Optional[bytes] = None
    response_status: Optional[int] = None
    response_headers: MutableMapping[str, str] = field(default_factory=dict)
    next_step: Optional[str] = None
    next_delay_sec: float = 0.0
    status_codes: Optional[List[int]] = None
    time_elapsed: Optional[int] = None  # ms

    # --- request handle ---

    def take_pending(self) -> "PendingRequest":
        """Remove and return the unsent request. A context sends at most once."""
        if self.pending is None:
            raise RequestAlreadySent(self.current_step)
        pending, self.pending = self.pending, None
        return pending

    # --- next step hint ---

    def set_next_step(self, step: str, delay_sec: float = 0.0) -> None:
        if delay_sec < 0:
            raise ValueError("delay_sec must be >= 0")
        self.next_step = step
        self.next_delay_sec = float(delay_sec)

    def clear_next_step(self) -> None:
        self.next_step = None
        self.next_delay_sec = 0.0

    def get_next_step(self) -> Optional[str]:
        return self.next_step

    def get_next_delay(self) -> float:
        return self.next_delay_sec

    # --- timing ---

    def get_time_elapsed(self) -> Optional[int]:
        return self.time_elapsed

    def set_time_elapsed(self, time_elapsed: int) -> None:
        self.time_elapsed = int(time_elapsed)

    # --- body ---

    def set_response(self, body: bytes) -> None:
        self.response = bytes(body)

    def body_bytes(self) -> Optional[bytes]:
        return self.response

    def body_text(self) -> str:
        if self.response is None:
            return ""
        enc = _charset_from_headers(self.response_headers) or "utf-8"
        return self.response.decode(enc, errors="replace")

    def body_json(self, shape: Any = None) -> Any:
        """
        Decode the body as JSON.

        With ``shape`` (a pydantic model, dataclass, TypedDict or plain type
        such as ``dict[str, int]``) the document is validated into it.
        Raises BodyDecodeError when there is no body or it does not fit.
        """
        if self.response is None:
            raise BodyDecodeError("no response body")
        try:
            if shape is None:
                return json.loads(self.response)
            return TypeAdapter(shape).validate_json(self.response)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise BodyDecodeError(str(e)) from e

    def body_soup(self) -> Optional[BeautifulSoup]:
        if self.response is None:
            return None
        return BeautifulSoup(self.body_text(), "html.parser")
