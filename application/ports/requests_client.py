# application/ports/requests_client.py
from __future__ import annotations

from typing import Dict, List, Optional

import requests
from urllib3.exceptions import NewConnectionError, ReadTimeoutError

from application.ports.http_client import HttpRequester, HttpResponse, PendingRequest, RequesterSettings
from domain.exceptions import RequestTimeout, TransportError
from domain.request import Request


DEFAULT_TIMEOUT_SEC = 30.0


def _is_timeout(exc: BaseException) -> bool:
    """
    True when a read deadline is buried in a requests error.

    Session.send reads the body eagerly and requests wraps a read timeout at
    that stage in ConnectionError, so the cause has to be dug out of the
    args, the urllib3 ``reason`` and the exception chain.
    """
    seen = set()
    stack: List[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        # urllib3 derives NewConnectionError from ConnectTimeoutError; a refused
        # connection is not a timeout
        if isinstance(cur, NewConnectionError):
            continue
        if isinstance(cur, (requests.exceptions.Timeout, ReadTimeoutError, TimeoutError)):
            return True
        stack.extend(a for a in cur.args if isinstance(a, BaseException))
        reason = getattr(cur, "reason", None)
        if isinstance(reason, BaseException):
            stack.append(reason)
        for link in (cur.__cause__, cur.__context__):
            if link is not None:
                stack.append(link)
    return False


class RequestsHttpRequester(HttpRequester):
    def __init__(self, settings: Optional[RequesterSettings] = None):
        super().__init__(settings)
        self._session = requests.Session()

    def build(self, request: Request) -> PendingRequest:
        headers: Dict[str, str] = {}
        user_agent = request.user_agent or self.settings.user_agent
        if user_agent:
            headers["User-Agent"] = user_agent
        if not (request.compressed and self.settings.compression):
            headers["Accept-Encoding"] = "identity"
        # explicit request headers win over derived ones
        headers.update(request.headers)

        try:
            prepared = self._session.prepare_request(
                requests.Request(
                    method=request.method,
                    url=request.url,
                    headers=headers,
                    data=request.body,
                )
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            raise TransportError(f"invalid request: {e}") from e

        proxy = request.proxy or self.settings.proxy
        timeout = request.timeout or self.settings.timeout_sec or DEFAULT_TIMEOUT_SEC
        options: Dict[str, object] = {"timeout": timeout}
        if proxy:
            options["proxies"] = {"http": proxy, "https": proxy}
        return PendingRequest(request=request, prepared=prepared, options=options)

    def send(self, pending: PendingRequest) -> HttpResponse:
        try:
            resp = self._session.send(pending.prepared, **pending.options)
        except requests.exceptions.Timeout as e:
            raise RequestTimeout(str(e)) from e
        except requests.exceptions.RequestException as e:
            if _is_timeout(e):
                raise RequestTimeout(str(e)) from e
            raise TransportError(str(e)) from e

        return HttpResponse(
            status=resp.status_code,
            url=str(resp.url),
            headers=dict(resp.headers),
            content=resp.content,
        )

    def snapshot_cookies(self) -> List[Dict[str, object]]:
        out: List[Dict[str, object]] = []
        for c in self._session.cookies:
            out.append(
                {
                    "name": c.name,
                    "value": c.value,
                    "domain": c.domain,
                    "path": c.path,
                    "secure": bool(getattr(c, "secure", False)),
                    "expires": getattr(c, "expires", None),
                }
            )
        return out

    def close(self) -> None:
        self._session.close()
