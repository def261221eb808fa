# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/errors.py
from __future__ import annotations

from typing import Any, Optional


class OpenStackError(RuntimeError):
    """Base class for OpenStack client failures."""


class TransportError(OpenStackError):
    """
    Non-success HTTP exchange.

    message: "<status> Error" for HTTP failures, "Error" for network failures
    body:    raw response text (or failure description)
    status:  HTTP status code, None when no response was received
    """

    def __init__(self, message: str, body: Any = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.body = body
        self.status = status

    def __repr__(self) -> str:
        return f"TransportError(message={self.message!r}, status={self.status!r})"


class KeystoneError(OpenStackError):
    """Raised when the identity session is used before init()."""


class NotAuthenticatedError(OpenStackError):
    """A resource call was made without an authenticated session."""


class ServiceUnavailableError(OpenStackError):
    """The service, or its endpoint for the region, is not in the catalog."""
