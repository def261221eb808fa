# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/catalog.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ProtocolVersion(IntEnum):
    V2 = 2
    V3 = 3


ENDPOINT_KINDS = ("adminURL", "internalURL", "publicURL")


@dataclass(frozen=True)
class Endpoint:
    """
    One catalog endpoint.

    V2 records carry one URL per kind (publicURL, internalURL, adminURL);
    V3 records carry a single url tagged with an interface.
    """
    region: Optional[str]
    interface: Optional[str] = None
    url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Endpoint":
        return cls(
            region=d.get("region"),
            interface=d.get("interface"),
            url=d.get("url"),
            raw=dict(d),
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)


@dataclass(frozen=True)
class Service:
    type: str
    name: Optional[str]
    endpoints: List[Endpoint]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Service":
        return cls(
            type=d.get("type"),
            name=d.get("name"),
            endpoints=[Endpoint.from_dict(e) for e in d.get("endpoints") or []],
            raw=dict(d),
        )

    def regions(self) -> List[str]:
        seen: List[str] = []
        for ep in self.endpoints:
            if ep.region is not None and ep.region not in seen:
                seen.append(ep.region)
        return seen


@dataclass(frozen=True)
class ProjectRef:
    id: Optional[str]
    name: Optional[str] = None


@dataclass(frozen=True)
class TokenInfo:
    id: str
    expires: Optional[str]
    tenant: Optional[ProjectRef] = None


@dataclass(frozen=True)
class AccessInfo:
    """Normalized result of a successful authentication (either version)."""
    token: TokenInfo
    service_catalog: List[Service]
    user: Dict[str, Any]
    roles: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """The V2-style `{"access": {...}}` document."""
        tenant = None
        if self.token.tenant is not None:
            tenant = {"id": self.token.tenant.id, "name": self.token.tenant.name}
        return {
            "access": {
                "token": {
                    "id": self.token.id,
                    "expires": self.token.expires,
                    "tenant": tenant,
                },
                "serviceCatalog": [s.raw for s in self.service_catalog],
                "user": self.user,
            }
        }


def interface_for(endpoint_kind: str) -> str:
    """publicURL -> public, internalURL -> internal, admin -> admin."""
    return endpoint_kind.split("URL")[0]


def endpoint_url(
    service: Optional[Service],
    region: Optional[str],
    endpoint_kind: str,
    version: ProtocolVersion,
) -> Optional[str]:
    """
    URL of the first endpoint of `service` in `region`.

    Under V3 the endpoint's interface must also match `endpoint_kind` with the
    "URL" suffix stripped. Returns None when nothing matches.
    """
    if service is None:
        return None

    if version == ProtocolVersion.V3:
        wanted = interface_for(endpoint_kind)
        for ep in service.endpoints:
            if ep.region == region and ep.interface == wanted:
                return ep.url
        return None

    for ep in service.endpoints:
        if ep.region == region:
            return ep.get(endpoint_kind)
    return None
