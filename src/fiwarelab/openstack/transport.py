# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/transport.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from fiwarelab.observers.dispatcher import EventBus
from fiwarelab.observers.events import RequestFailed, new_ctx
from fiwarelab.openstack.errors import TransportError

log = logging.getLogger("fiwarelab")

SUCCESS_STATUSES = frozenset({100, 200, 201, 202, 203, 204, 205, 206, 207})
TEXT_PLAIN_UTF8 = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"
IMAGES_JSON_PATCH = "application/openstack-images-v2.1-json-patch"

SuccessCallback = Callable[[Any, Mapping[str, str], Optional[str]], None]
ErrorCallback = Callable[[TransportError], None]
UnauthorizedHook = Callable[[TransportError], None]


@dataclass
class Outcome:
    """What a single send() produced; mirrors the callback that fired."""
    ok: bool
    result: Any = None
    headers: Optional[Mapping[str, str]] = None
    subject_token: Optional[str] = None
    error: Any = None


def _noop(*_args, **_kwargs) -> None:
    return None


class Transport:
    """
    One HTTP exchange per call, normalized to exactly one success or one
    error callback.

    - X-Auth-Token is attached when a token is given
    - Content-Type / Accept default to application/json
    - 100 and 200..207 are success; anything else is a TransportError
    - a 401 runs `unauthorized_hook` once (unless skip_token_recheck) and
      then reports the 401 to on_error anyway
    """

    def __init__(
        self,
        *,
        http: Optional[requests.Session] = None,
        verify_tls: bool = True,
        timeout: Optional[float] = None,
        unauthorized_hook: Optional[UnauthorizedHook] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.http = http or requests.Session()
        self.verify_tls = verify_tls
        self.timeout = timeout
        self.unauthorized_hook = unauthorized_hook
        self.bus = bus or EventBus()
        # event context, filled in by the session that owns this transport
        self.run_id = run_id
        self.identity_url: Optional[str] = None

    # -----------------------
    # Request building
    # -----------------------
    @staticmethod
    def build_headers(
        token: Optional[str],
        headers: Optional[Mapping[str, str]],
        has_body: bool,
    ) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if token is not None:
            out["X-Auth-Token"] = token

        has_content_type = False
        has_accept = False
        for name, value in (headers or {}).items():
            if name.lower() == "content-type":
                has_content_type = True
            if name.lower() == "accept":
                has_accept = True
            out[name] = value

        if has_body and not has_content_type:
            out["Content-Type"] = JSON_CONTENT_TYPE
        if not has_accept:
            out["Accept"] = JSON_CONTENT_TYPE
        return out

    # -----------------------
    # Core
    # -----------------------
    def send(
        self,
        method: str,
        url: str,
        body: Any = None,
        token: Optional[str] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        headers: Optional[Mapping[str, str]] = None,
        skip_token_recheck: bool = False,
    ) -> Outcome:
        on_success = on_success or _noop
        on_error = on_error or _noop
        method = method.upper()

        try:
            req_headers = self.build_headers(token, headers, body is not None)
            data = json.dumps(body) if body is not None else None
            log.debug("%s %s", method, url)
            resp = self.http.request(
                method,
                url,
                headers=req_headers,
                data=data,
                verify=self.verify_tls,
                timeout=self.timeout,
            )
        except (requests.RequestException, TypeError, ValueError) as exc:
            err = TransportError("Error", body=str(exc))
            log.warning("%s %s failed before a response: %s", method, url, exc)
            self._emit_failure(method, url, err)
            on_error(err)
            return Outcome(ok=False, error=err)

        status = resp.status_code
        text = resp.text or ""

        if status in SUCCESS_STATUSES:
            try:
                result = self._parse_body(resp, text)
            except ValueError as exc:
                err = TransportError(f"{status} Error", body=text, status=status)
                log.warning("%s %s returned malformed JSON: %s", method, url, exc)
                self._emit_failure(method, url, err)
                on_error(err)
                return Outcome(ok=False, error=err)

            subject_token = resp.headers.get("x-subject-token")
            on_success(result, resp.headers, subject_token)
            return Outcome(
                ok=True,
                result=result,
                headers=resp.headers,
                subject_token=subject_token,
            )

        err = TransportError(f"{status} Error", body=text, status=status)
        log.debug("%s %s -> %s", method, url, status)
        self._emit_failure(method, url, err)

        if status == 401 and not skip_token_recheck:
            self._run_unauthorized_hook(err)

        on_error(err)
        return Outcome(ok=False, error=err)

    @staticmethod
    def _parse_body(resp: requests.Response, text: str) -> Any:
        if text == "":
            return None
        if resp.headers.get("content-type") == TEXT_PLAIN_UTF8:
            return text
        return json.loads(text)

    def _run_unauthorized_hook(self, err: TransportError) -> None:
        if self.unauthorized_hook is None:
            return
        log.info("Unauthorized response. Checking token with Keystone ...")
        try:
            self.unauthorized_hook(err)
        except Exception as exc:  # the 401 is still reported below
            log.warning("Token re-check hook failed: %s", exc)

    def _emit_failure(self, method: str, url: str, err: TransportError) -> None:
        ctx = new_ctx(identity_url=self.identity_url, run_id=self.run_id)
        self.bus.emit(
            RequestFailed(
                **ctx,
                method=method,
                url=url,
                status=err.status,
                message=err.message,
            )
        )

    # -----------------------
    # Verb helpers
    # -----------------------
    def get(self, url, token=None, on_success=None, on_error=None, headers=None, skip_token_recheck=False):
        return self.send("GET", url, None, token, on_success, on_error, headers, skip_token_recheck)

    def head(self, url, token=None, on_success=None, on_error=None, headers=None):
        return self.send("HEAD", url, None, token, on_success, on_error, headers)

    def post(self, url, body, token=None, on_success=None, on_error=None, headers=None):
        return self.send("POST", url, body, token, on_success, on_error, headers)

    def put(self, url, body, token=None, on_success=None, on_error=None, headers=None):
        return self.send("PUT", url, body, token, on_success, on_error, headers)

    def patch(self, url, body, token=None, on_success=None, on_error=None, headers=None):
        merged = dict(headers or {})
        if not any(name.lower() == "content-type" for name in merged):
            merged["Content-Type"] = IMAGES_JSON_PATCH
        return self.send("PATCH", url, body, token, on_success, on_error, merged)

    def delete(self, url, token=None, on_success=None, on_error=None, headers=None):
        return self.send("DELETE", url, None, token, on_success, on_error, headers)
