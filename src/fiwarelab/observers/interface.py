# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/observers/interface.py

from __future__ import annotations
from typing import Protocol, runtime_checkable
from .events import BaseEvent


@runtime_checkable
class Observer(Protocol):
    """Anything with notify(event); the bus checks this on subscribe."""

    def notify(self, event: BaseEvent) -> None: ...
