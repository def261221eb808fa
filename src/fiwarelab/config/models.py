# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/config/models.py

from typing import List, Optional, Literal
from pydantic import BaseModel, Field

DEFAULT_AUTH_URL = "http://cloud.lab.fiware.org:4730/v2.0/"
DEFAULT_AUTH_URL_V3 = "http://cloud.lab.fiware.org:4730/v3/"


class IdentityConfig(BaseModel):
    """Keystone endpoints and credentials."""

    auth_url: str = DEFAULT_AUTH_URL          # v2 endpoint, used to list tenants
    auth_url_v3: str = DEFAULT_AUTH_URL_V3    # v3 endpoint, used for the scoped login
    admin_url: Optional[str] = None

    username: Optional[str] = None
    password: Optional[str] = None
    tenant_id: Optional[str] = None

    verify_tls: bool = True
    timeout_seconds: Optional[float] = None   # None = requests default (no timeout)


class InstanceConfig(BaseModel):
    name: Optional[str] = None
    image_name: str = "base_ubuntu_14.04"
    flavor_name: str = "m1.small"
    network_name: Optional[str] = None
    security_groups: List[str] = Field(default_factory=list)
    floating_ip_pool: Optional[str] = None
    key_name: Optional[str] = None
    ssh_user: Optional[str] = None    # defaults to the image's user
    ssh_port: int = 22
    user_data: Optional[str] = None


class FiwareLabConfig(BaseModel):
    identity: IdentityConfig = IdentityConfig()
    region: Optional[str] = None
    # Prepended to every identity/service URL, e.g. a CORS proxy
    # "https://rancher.example.org/v2-beta/proxy/".
    proxy_prefix: str = ""
    endpoint_type: Literal["publicURL", "internalURL", "adminURL"] = "publicURL"
    instance: InstanceConfig = InstanceConfig()
