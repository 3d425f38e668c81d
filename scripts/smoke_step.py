#!/usr/bin/env python3
"""
Execute a single HTTP step and print the outcome.

Usage:
  python scripts/smoke_step.py <url> [--method GET] [--status 200 ...] [--timeout 10]
                               [--header "Name: value" ...] [--next <step>] [--env-file .env]

Examples:
  python scripts/smoke_step.py https://example.com
  python scripts/smoke_step.py https://example.com/missing --status 404
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional

from application.executor.bot import RequesterFactory
from domain.context import Context
from domain.exceptions import StepError
from domain.request import Request, parse_headers
from domain.steps.base import BaseStep
from infrastructure.bot_factory import create_bot


SMOKE_STEP_NAME = "Smoke"


@dataclass(frozen=True)
class UrlStep(BaseStep):
    url: str
    method: str = "GET"
    status_codes: Optional[List[int]] = None
    timeout: Optional[float] = None
    headers_block: str = ""
    next_step: Optional[str] = None
    step_name: str = SMOKE_STEP_NAME

    def on_request(self) -> Request:
        req = Request(method=self.method, url=self.url, headers=parse_headers(self.headers_block))
        if self.status_codes:
            req = req.with_status_codes(self.status_codes)
        if self.timeout:
            req = req.with_timeout(self.timeout)
        return req

    def on_success(self, ctx: Context) -> None:
        print(f"Body bytes: {len(ctx.body_bytes() or b'')}")
        if self.next_step:
            ctx.set_next_step(self.next_step)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Single step execution helper")
    parser.add_argument("url", type=str)
    parser.add_argument("--method", type=str, default="GET")
    parser.add_argument("--status", type=int, action="append", dest="status_codes")
    parser.add_argument("--timeout", type=float)
    parser.add_argument("--header", type=str, action="append", default=[])
    parser.add_argument("--next", type=str, dest="next_step")
    parser.add_argument("--env-file", type=str)
    return parser


def main(
    argv: Optional[List[str]] = None,
    requester_factory: Optional[RequesterFactory] = None,
) -> None:
    args = _build_parser().parse_args(argv)

    step = UrlStep(
        url=args.url,
        method=args.method,
        status_codes=args.status_codes,
        timeout=args.timeout,
        headers_block="\n".join(args.header),
        next_step=args.next_step,
    )
    bot = create_bot(steps=[step], env_path=args.env_file, requester_factory=requester_factory)

    try:
        ctx = bot.execute(SMOKE_STEP_NAME)
    except StepError as e:
        print(f"Error: {type(e).__name__}: {e}")
        sys.exit(1)

    print(f"Status: {ctx.response_status}")
    print(f"Elapsed: {ctx.get_time_elapsed()} ms")
    print(f"Next step: {ctx.get_next_step() or '-'}")
    sys.exit(0)


if __name__ == "__main__":
    main()
