# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/keystone.py

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Callable, List, Optional

from fiwarelab.observers.dispatcher import EventBus
from fiwarelab.observers.events import (
    AuthFailed,
    AuthStarted,
    AuthSucceeded,
    TokenRechecked,
    new_ctx,
)
from fiwarelab.openstack.catalog import (
    AccessInfo,
    Endpoint,
    ProtocolVersion,
    Service,
    endpoint_url,
)
from fiwarelab.openstack.errors import KeystoneError, NotAuthenticatedError, TransportError
from fiwarelab.openstack.identity import strategy_for
from fiwarelab.openstack.transport import Outcome, Transport

log = logging.getLogger("fiwarelab")


class AuthState(IntEnum):
    DISCONNECTED = 0
    AUTHENTICATING = 1
    AUTHENTICATED = 2
    AUTHENTICATION_ERROR = 3


def _ensure_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def _redact(token: Optional[str]) -> str:
    if not token:
        return "<none>"
    return token[:4] + "..." if len(token) > 8 else "<redacted>"


class KeystoneSession:
    """
    Identity session for one cloud.

    Holds the authentication state, the current token and the service
    catalog issued with it. Compute and network clients take the session
    they should use; nothing here is process-global.

    Example:

        session = KeystoneSession()
        session.init("http://cloud.lab.fiware.org:4730/v2.0/")
        session.authenticate("alice", "secret", on_error=print)
        nova_service = session.get_service("compute")
    """

    def __init__(
        self,
        identity_url: Optional[str] = None,
        admin_url: Optional[str] = None,
        *,
        transport: Optional[Transport] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.transport = transport or Transport()
        if self.transport.unauthorized_hook is None:
            self.transport.unauthorized_hook = self._recheck_token
        self.bus = bus or self.transport.bus
        self.run_id = run_id or self.transport.run_id
        if self.transport.run_id is None:
            self.transport.run_id = self.run_id

        self.base_url: Optional[str] = None
        self.admin_url: Optional[str] = None
        self.state = AuthState.DISCONNECTED
        self.access: Optional[AccessInfo] = None
        self.token: Optional[str] = None
        self._identity = None

        if identity_url is not None:
            self.init(identity_url, admin_url)

    # -----------------------
    # Lifecycle
    # -----------------------
    def init(self, identity_url: str, admin_url: Optional[str] = None) -> None:
        """Point the session at a Keystone endpoint and forget any previous login."""
        log.debug("Keystone init url=%s admin_url=%s", identity_url, admin_url)
        self.base_url = _ensure_slash(identity_url)
        self.admin_url = _ensure_slash(admin_url) if admin_url else None
        self.transport.identity_url = self.base_url
        self.access = None
        self.token = None
        self.state = AuthState.DISCONNECTED
        self._identity = strategy_for(identity_url)

    @property
    def version(self) -> Optional[ProtocolVersion]:
        return self._identity.version if self._identity is not None else None

    @property
    def authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED

    def _ctx(self) -> dict:
        return new_ctx(identity_url=self.base_url, run_id=self.run_id)

    # -----------------------
    # Authentication
    # -----------------------
    def authenticate(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        token: Optional[str] = None,
        project_id: Optional[str] = None,
        on_success: Optional[Callable[[AccessInfo], None]] = None,
        on_error: Optional[Callable[[AuthState], None]] = None,
    ) -> Outcome:
        """
        Request a token with username/password or with an existing token.

        on_success receives the normalized AccessInfo; on_error receives the
        resulting AuthState (AUTHENTICATION_ERROR), not a message.
        """
        if self._identity is None:
            raise KeystoneError("KeystoneSession.init() must be called before authenticate()")

        identity = self._identity
        credentials = identity.build_credentials(username, password, token, project_id)
        method = "token" if token is not None else "password"

        self.state = AuthState.AUTHENTICATING
        self.bus.emit(AuthStarted(**self._ctx(), version=int(identity.version),
                                  method=method, project_id=project_id))
        log.info("Authenticating against %s (v%d, %s)", self.base_url, identity.version, method)

        captured: dict = {}

        def ok(result: Any, _headers, subject_token: Optional[str]) -> None:
            captured["result"] = result
            captured["subject_token"] = subject_token

        def failed(err: TransportError) -> None:
            captured["error"] = err

        outcome = self.transport.post(identity.tokens_url(self.base_url), credentials,
                                      on_success=ok, on_error=failed)

        access: Optional[AccessInfo] = None
        error: Optional[str] = None
        if outcome.ok:
            try:
                access = identity.parse_response(captured.get("result"), captured.get("subject_token"))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                error = f"unexpected identity response: {exc}"
        else:
            err = captured.get("error")
            error = err.message if err is not None else "Error"

        if access is None:
            self.state = AuthState.AUTHENTICATION_ERROR
            log.warning("Authentication failed: %s", error)
            self.bus.emit(AuthFailed(**self._ctx(), version=int(identity.version), error=error))
            if on_error is not None:
                on_error(self.state)
            return Outcome(ok=False, error=self.state)

        self.access = access
        self.token = access.token.id
        self.state = AuthState.AUTHENTICATED
        tenant_id = access.token.tenant.id if access.token.tenant else None
        log.info("Authenticated token=%s project=%s expires=%s",
                 _redact(self.token), tenant_id, access.token.expires)
        self.bus.emit(AuthSucceeded(**self._ctx(), version=int(identity.version),
                                    project_id=tenant_id, expires=access.token.expires))
        if on_success is not None:
            on_success(access)
        return Outcome(ok=True, result=access, subject_token=captured.get("subject_token"))

    def _not_authenticated(self, operation: str, on_error) -> Outcome:
        err = NotAuthenticatedError(f"{operation}: no token, authenticate first")
        log.warning("%s", err)
        if on_error is not None:
            on_error(err)
        return Outcome(ok=False, error=err)

    def validate_token(self, on_success=None, on_error=None) -> Outcome:
        """Ask Keystone whether the current token is still valid."""
        if self._identity is None:
            raise KeystoneError("KeystoneSession.init() must be called before validate_token()")

        if self.token is None:
            return self._not_authenticated("validate_token", on_error)

        url, headers = self._identity.validate_request(self.base_url, self.token)
        return self.transport.get(
            url,
            self.token,
            on_success=(lambda result, *_: on_success(result)) if on_success else None,
            on_error=on_error,
            headers=headers,
            skip_token_recheck=True,
        )

    def _recheck_token(self, _error: TransportError) -> None:
        """401 hook: diagnose only, never retries the original request."""
        if self._identity is None:
            log.warning("Unauthorized response but the session was never initialized; token not re-checked")
            return

        def valid(_result):
            log.info("Valid token. Perhaps there is an issue in the service authentication")
            self.bus.emit(TokenRechecked(**self._ctx(), valid=True))

        def invalid(err):
            log.warning("Invalid token: %s", getattr(err, "message", err))
            self.bus.emit(TokenRechecked(**self._ctx(), valid=False,
                                         error=getattr(err, "message", str(err))))

        self.validate_token(valid, invalid)

    # -----------------------
    # Catalog
    # -----------------------
    def get_service(self, service_type: str) -> Optional[Service]:
        if self.state != AuthState.AUTHENTICATED or self.access is None:
            return None
        for service in self.access.service_catalog:
            if service.type == service_type:
                return service
        return None

    def get_service_catalog(self) -> Optional[List[Service]]:
        if self.state != AuthState.AUTHENTICATED or self.access is None:
            return None
        return self.access.service_catalog

    def get_endpoint(self, region: str, service_type: str) -> Optional[Endpoint]:
        service = self.get_service(service_type)
        if service is None:
            return None
        for ep in service.endpoints:
            if ep.region == region:
                return ep
        return None

    def get_endpoint_url(self, service: Optional[Service], region: str, endpoint_kind: str) -> Optional[str]:
        if self.version is None:
            return None
        return endpoint_url(service, region, endpoint_kind, self.version)

    def regions(self, service_type: str = "compute") -> List[str]:
        service = self.get_service(service_type)
        return service.regions() if service is not None else []

    # -----------------------
    # Tenants
    # -----------------------
    def list_tenants(self, on_success=None, admin: bool = False, on_error=None) -> Outcome:
        """
        Tenants (v2) or authorized organizations (v3) visible to the token.

        The result is a dict with a "tenants" list in both cases; entries keep
        their provider-specific fields.
        """
        if self._identity is None:
            raise KeystoneError("KeystoneSession.init() must be called before list_tenants()")

        if self.token is None:
            return self._not_authenticated("list_tenants", on_error)

        base = self.admin_url if admin and self.admin_url else self.base_url
        url, token = self._identity.tenants_request(base, self.token)
        normalize = self._identity.normalize_tenants
        holder: dict = {}

        def ok(result, *_):
            holder["tenants"] = normalize(result)
            if on_success is not None:
                on_success(holder["tenants"])

        outcome = self.transport.get(url, token, on_success=ok, on_error=on_error)
        if outcome.ok:
            outcome.result = holder.get("tenants")
        return outcome
