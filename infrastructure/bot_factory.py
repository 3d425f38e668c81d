# infrastructure/bot_factory.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from application.executor.bot import Bot, RequesterFactory
from application.executor.step_registry import StepRegistry
from application.ports.logger import LoggerPort
from application.ports.requests_client import RequestsHttpRequester
from domain.steps.base import Step
from infrastructure.config.env_settings import EngineSettings, load_settings
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


def build_logger(settings: EngineSettings) -> LoggerPort:
    """text => loguru, json => JSON lines on stdout, both => each event to both."""
    if settings.log_format == "json":
        return ConsoleLogger()

    setup_console_logging(level=settings.log_level)
    if settings.log_format == "both":
        return CompositeLogger([LoguruLogger(), ConsoleLogger()])
    return LoguruLogger()


def create_bot(
    steps: Optional[Iterable[Step]] = None,
    settings: Optional[EngineSettings] = None,
    env_path: Optional[Union[str, Path]] = None,
    requester_factory: Optional[RequesterFactory] = None,
    logger: Optional[LoggerPort] = None,
    strict: bool = False,
) -> Bot:
    """Wire a Bot from settings (.env + environment unless given)."""
    if settings is None:
        settings = load_settings(env_path)
    if logger is None:
        logger = build_logger(settings)

    return Bot(
        steps=StepRegistry(steps, strict=strict),
        requester_factory=requester_factory or RequestsHttpRequester,
        defaults=settings.requester_settings(),
        logger=logger,
    )
