# src/fiwarelab/observers/logger.py
from __future__ import annotations
import logging
from .events import AuthFailed, BaseEvent, RequestFailed, TokenRechecked


class LoggerObserver:
    """Writes every event to the run logger; failures are logged as warnings."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts", "run_id"))

        level = logging.INFO
        if isinstance(event, AuthFailed):
            level = logging.WARNING
        elif isinstance(event, TokenRechecked) and not event.valid:
            level = logging.WARNING
        elif isinstance(event, RequestFailed):
            level = logging.DEBUG

        self.logger.log(level, f"[EVENT] {etype}: {msg}")
