# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/identity.py

"""
Keystone wire formats.

Each strategy knows how to build the credentials document for its API
version, where to send it, and how to turn the response into an AccessInfo.
The session picks one at init() time and never branches on the version
itself.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fiwarelab.openstack.catalog import (
    AccessInfo,
    ProjectRef,
    ProtocolVersion,
    Service,
    TokenInfo,
)

DEFAULT_USER_DOMAIN = "default"


class IdentityV2:
    version = ProtocolVersion.V2

    def build_credentials(
        self,
        username: Optional[str],
        password: Optional[str],
        token: Optional[str],
        project_id: Optional[str],
    ) -> Dict[str, Any]:
        if token is not None:
            auth: Dict[str, Any] = {"token": {"id": token}}
        else:
            auth = {"passwordCredentials": {"username": username, "password": password}}

        if project_id is not None:
            auth["tenantId"] = project_id
        return {"auth": auth}

    def tokens_url(self, base_url: str) -> str:
        return f"{base_url}tokens"

    def parse_response(self, result: Any, subject_token: Optional[str]) -> AccessInfo:
        access = result["access"]
        token = access["token"]
        tenant = token.get("tenant")
        user = access.get("user") or {}
        return AccessInfo(
            token=TokenInfo(
                id=token["id"],
                expires=token.get("expires"),
                tenant=ProjectRef(tenant.get("id"), tenant.get("name")) if tenant else None,
            ),
            service_catalog=[Service.from_dict(s) for s in access.get("serviceCatalog") or []],
            user=user,
            roles=list(user.get("roles") or []),
        )

    def validate_request(self, base_url: str, token: str) -> tuple[str, Dict[str, str]]:
        return f"{base_url}tokens/{token}", {}

    def tenants_request(self, base_url: str, token: Optional[str]) -> tuple[str, Optional[str]]:
        return f"{base_url}tenants", token

    def normalize_tenants(self, result: Any) -> Any:
        return result


class IdentityV3:
    version = ProtocolVersion.V3

    def __init__(self, user_domain: str = DEFAULT_USER_DOMAIN):
        self.user_domain = user_domain

    def build_credentials(
        self,
        username: Optional[str],
        password: Optional[str],
        token: Optional[str],
        project_id: Optional[str],
    ) -> Dict[str, Any]:
        if token is not None:
            identity: Dict[str, Any] = {
                "methods": ["oauth2"],
                "oauth2": {"access_token_id": token},
            }
        else:
            identity = {
                "methods": ["password"],
                "password": {
                    "user": {
                        "name": username,
                        "domain": {"id": self.user_domain},
                        "password": password,
                    }
                },
            }

        auth: Dict[str, Any] = {"identity": identity}
        if project_id is not None:
            auth["scope"] = {"project": {"id": project_id}}
        return {"auth": auth}

    def tokens_url(self, base_url: str) -> str:
        return f"{base_url}auth/tokens"

    def parse_response(self, result: Any, subject_token: Optional[str]) -> AccessInfo:
        # The bearer token only travels in the X-Subject-Token header.
        if not subject_token:
            raise ValueError("identity v3 response carried no X-Subject-Token header")

        token = result["token"]
        project = token.get("project") or {}
        return AccessInfo(
            token=TokenInfo(
                id=subject_token,
                expires=token.get("expires_at"),
                tenant=ProjectRef(project.get("id"), project.get("name")),
            ),
            service_catalog=[Service.from_dict(s) for s in token.get("catalog") or []],
            user=token.get("user") or {},
            roles=list(token.get("roles") or []),
        )

    def validate_request(self, base_url: str, token: str) -> tuple[str, Dict[str, str]]:
        return f"{base_url}auth/tokens", {"X-Subject-Token": token}

    def tenants_request(self, base_url: str, token: Optional[str]) -> tuple[str, Optional[str]]:
        # FIWARE Lab serves organizations from the identity manager without
        # an X-Auth-Token; the token goes in the path.
        return f"{base_url}authorized_organizations/{token}", None

    def normalize_tenants(self, result: Any) -> Any:
        organizations = result.get("organizations") if isinstance(result, Mapping) else None
        return {"tenants": organizations or []}


def strategy_for(identity_url: str):
    return IdentityV3() if "v3" in identity_url else IdentityV2()
