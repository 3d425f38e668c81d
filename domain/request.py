# domain/request.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union


Body = Union[bytes, str]


def parse_headers(block: str) -> Dict[str, str]:
    """
    Parse a multi-line "Name: value" block into a header dict.

        parse_headers('''
            User-Agent: stepbot
            Accept: */*
        ''')

    Blank lines are skipped. Later lines win for repeated names.
    """
    headers: Dict[str, str] = {}
    for raw in block.splitlines():
        line = raw.strip()
        if not line:
            continue
        if ":" not in line:
            raise ValueError(f"invalid header line: {line!r}")
        name, value = line.split(":", 1)
        name = name.strip()
        if not name:
            raise ValueError(f"invalid header line: {line!r}")
        headers[name] = value.strip()
    return headers


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None  # seconds; None => requester default
    proxy: Optional[str] = None
    status_codes: Optional[List[int]] = None  # None => any 2xx
    compressed: bool = True
    user_agent: Optional[str] = None
    body: Optional[Body] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("request url must not be empty")
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", dict(self.headers))
        if self.status_codes is not None:
            object.__setattr__(self, "status_codes", [int(c) for c in self.status_codes])

    @classmethod
    def get(cls, url: str) -> "Request":
        return cls(method="GET", url=url)

    @classmethod
    def post(cls, url: str, body: Optional[Body] = None) -> "Request":
        return cls(method="POST", url=url, body=body)

    def with_headers(self, headers: Dict[str, str]) -> "Request":
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def with_header(self, name: str, value: str) -> "Request":
        return self.with_headers({name: value})

    def with_timeout(self, timeout: float) -> "Request":
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        return replace(self, timeout=float(timeout))

    def with_proxy(self, proxy: Optional[str]) -> "Request":
        return replace(self, proxy=proxy)

    def with_status_codes(self, codes: List[int]) -> "Request":
        return replace(self, status_codes=list(codes))

    def with_compression(self, enabled: bool) -> "Request":
        return replace(self, compressed=bool(enabled))

    def with_user_agent(self, user_agent: Optional[str]) -> "Request":
        return replace(self, user_agent=user_agent)

    def with_body(self, body: Optional[Body]) -> "Request":
        return replace(self, body=body)

    def is_compressed(self) -> bool:
        return self.compressed

    def clone(self) -> "Request":
        # __post_init__ copies headers and status codes
        return replace(self)
