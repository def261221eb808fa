# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/service.py

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fiwarelab.openstack.catalog import ENDPOINT_KINDS
from fiwarelab.openstack.errors import (
    NotAuthenticatedError,
    OpenStackError,
    ServiceUnavailableError,
)
from fiwarelab.openstack.keystone import KeystoneSession
from fiwarelab.openstack.transport import Outcome, Transport

log = logging.getLogger("fiwarelab")


class ServiceClient:
    """
    Base for catalog-resolved REST clients (compute, network, ...).

    Every call resolves `{proxy_prefix}{endpoint}` for the requested region
    from the session and attaches the session token. When the session is not
    authenticated or the catalog has no matching endpoint, on_error receives
    NotAuthenticatedError / ServiceUnavailableError and no request is sent.
    """

    service_type: str = ""

    def __init__(
        self,
        session: KeystoneSession,
        *,
        transport: Optional[Transport] = None,
        proxy_prefix: str = "",
        endpoint_type: str = "publicURL",
    ):
        self.session = session
        self.transport = transport or session.transport
        self.proxy_prefix = proxy_prefix
        self.endpoint_type = "publicURL"
        self.configure(endpoint_type)

    def configure(self, endpoint_type: str) -> None:
        """Select adminURL, internalURL or publicURL; anything else is ignored."""
        if endpoint_type in ENDPOINT_KINDS:
            self.endpoint_type = endpoint_type
        else:
            log.debug("Ignoring unknown endpoint type %r", endpoint_type)

    def endpoint(self, region: Optional[str]) -> str:
        if not self.session.authenticated:
            raise NotAuthenticatedError(f"{self.service_type}: session is not authenticated")

        service = self.session.get_service(self.service_type)
        if service is None:
            raise ServiceUnavailableError(f"{self.service_type}: service not in catalog")

        url = self.session.get_endpoint_url(service, region, self.endpoint_type)
        if not url:
            raise ServiceUnavailableError(
                f"{self.service_type}: no {self.endpoint_type} endpoint in region {region!r}"
            )
        return f"{self.proxy_prefix}{url}"

    def _call(
        self,
        method: str,
        path: str,
        region: Optional[str],
        body: Any = None,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
        unwrap: Optional[Callable[[Any], Any]] = None,
    ) -> Outcome:
        try:
            base = self.endpoint(region)
        except OpenStackError as exc:
            log.warning("%s", exc)
            if on_error is not None:
                on_error(exc)
            return Outcome(ok=False, error=exc)

        holder: dict = {}

        def ok(result, *_):
            value = unwrap(result) if unwrap is not None and result is not None else result
            holder["value"] = value
            if on_success is not None:
                on_success(value)

        outcome = self.transport.send(method, base.rstrip("/") + path, body,
                                      self.session.token, ok, on_error)
        if outcome.ok:
            outcome.result = holder.get("value")
        return outcome
