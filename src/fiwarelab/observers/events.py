# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                      # ISO timestamp
    run_id: str                  # correlates events of one CLI invocation
    identity_url: Optional[str]  # keystone endpoint the session talks to

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(identity_url: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "identity_url": identity_url,
    }


# ---------------------------------------------------------------------
# Authentication lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class AuthStarted(BaseEvent):
    version: int
    method: str          # "password" | "token"
    project_id: Optional[str] = None

@dataclass(frozen=True)
class AuthSucceeded(BaseEvent):
    version: int
    project_id: Optional[str]
    expires: Optional[str]

@dataclass(frozen=True)
class AuthFailed(BaseEvent):
    version: int
    error: str

@dataclass(frozen=True)
class TokenRechecked(BaseEvent):
    valid: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RequestFailed(BaseEvent):
    method: str
    url: str
    status: Optional[int]
    message: str
