# application/executor/bot.py
from __future__ import annotations

import time
from typing import Callable, List, Optional

from requests.structures import CaseInsensitiveDict

from application.executor.step_registry import StepRegistry
from application.ports.http_client import HttpRequester, RequesterSettings
from application.ports.logger import LoggerPort, NullLogger
from application.ports.requests_client import RequestsHttpRequester
from domain.context import Context
from domain.exceptions import RequestTimeout, StatusCodeNotFound, StepNotFound, TransportError
from domain.request import Request
from domain.steps.base import Step


RequesterFactory = Callable[[RequesterSettings], HttpRequester]


def is_accepted(status: int, expected: Optional[List[int]]) -> bool:
    """Explicit list => membership, otherwise any 2xx."""
    if expected is not None:
        return status in expected
    return 200 <= status < 300


class Bot:
    """
    Executes one named step at a time.

    ``execute`` returns the Context on success and raises a StepError
    otherwise. Every failure after the step was resolved is also reported to
    the step (``on_error`` or ``on_timeout``) before it is raised. The Bot
    never retries and never picks the next step; callers read
    ``ctx.get_next_step()`` for that.

    The requester is closed once its single send is over, so the returned
    Context holds no open connections; its cookies stay readable.

    Independent ``execute`` calls may run on separate threads: each gets its
    own Context and requester, and the registry is only read.
    """

    def __init__(
        self,
        steps: Optional[StepRegistry] = None,
        requester_factory: Optional[RequesterFactory] = None,
        defaults: Optional[RequesterSettings] = None,
        logger: Optional[LoggerPort] = None,
    ):
        self.steps = steps if steps is not None else StepRegistry()
        self._requester_factory: RequesterFactory = requester_factory or RequestsHttpRequester
        self._defaults = defaults or RequesterSettings()
        self._logger = logger or NullLogger()

    def execute(self, step_name: str) -> Context:
        log = self._logger.bind(step=step_name)

        step = self.steps.find(step_name)
        if step is None:
            log.error("step.not_found")
            raise StepNotFound(step_name)

        t0 = time.perf_counter()

        req = step.on_request()
        ctx = self._new_context(step_name, req)
        log.info("step.start", method=req.method, url=req.url)

        try:
            ctx.pending = ctx.http_requester.build(req)
            resp = ctx.http_requester.send(ctx.take_pending())
        except RequestTimeout as e:
            self._record_elapsed(ctx, t0)
            log.warning("step.timeout", elapsed_ms=ctx.time_elapsed, error=str(e))
            step.on_timeout(ctx)
            raise
        except TransportError as e:
            self._record_elapsed(ctx, t0)
            log.error("step.transport_error", elapsed_ms=ctx.time_elapsed, error=str(e))
            step.on_error(ctx, e)
            raise
        finally:
            # one send per context; the pool is not needed past this point
            ctx.http_requester.close()

        self._record_elapsed(ctx, t0)
        ctx.response_status = resp.status
        ctx.response_headers = CaseInsensitiveDict(resp.headers)
        ctx.set_response(resp.content)

        if not is_accepted(resp.status, ctx.status_codes):
            err = StatusCodeNotFound(resp.status, ctx.status_codes)
            log.warning(
                "step.status_rejected",
                status=resp.status,
                expected=err.expected,
                elapsed_ms=ctx.time_elapsed,
            )
            step.on_error(ctx, err)
            raise err

        log.info("step.end", ok=True, status=resp.status, elapsed_ms=ctx.time_elapsed)
        try:
            step.on_success(ctx)
        finally:
            # body is readable during on_success only
            ctx.response = None
        return ctx

    def _new_context(self, step_name: str, req: Request) -> Context:
        settings = RequesterSettings(
            proxy=req.proxy or self._defaults.proxy,
            user_agent=req.user_agent or self._defaults.user_agent,
            compression=req.is_compressed(),
            timeout_sec=self._defaults.timeout_sec,
        )
        requester = self._requester_factory(settings)
        return Context(
            request=req.clone(),
            current_step=step_name,
            http_requester=requester,
            status_codes=list(req.status_codes) if req.status_codes is not None else None,
        )

    @staticmethod
    def _record_elapsed(ctx: Context, t0: float) -> None:
        ctx.set_time_elapsed(int((time.perf_counter() - t0) * 1000))

    def register(self, step: Step) -> "Bot":
        self.steps.insert(step)
        return self
