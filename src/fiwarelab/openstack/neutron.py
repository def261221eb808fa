# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/neutron.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fiwarelab.openstack.service import ServiceClient


def _key(name: str):
    return lambda result: result.get(name) if isinstance(result, dict) else result


class NeutronClient(ServiceClient):
    service_type = "network"

    # -----------------------
    # Networks
    # -----------------------
    def list_networks(self, on_success=None, on_error=None, region=None):
        """on_success receives the `networks` list."""
        return self._call("GET", "/v2.0/networks", region,
                          on_success=on_success, on_error=on_error, unwrap=_key("networks"))

    def create_network(self, name=None, admin_state_up=None, shared=None, tenant_id=None,
                       on_success=None, on_error=None, region=None):
        network: Dict[str, Any] = {}
        if name is not None:
            network["name"] = name
        if admin_state_up is not None:
            network["admin_state_up"] = admin_state_up
        if shared is not None:
            network["shared"] = shared
        if tenant_id is not None:
            network["tenant_id"] = tenant_id
        return self._call("POST", "/v2.0/networks", region, {"network": network},
                          on_success, on_error, unwrap=_key("network"))

    def delete_network(self, network_id, on_success=None, on_error=None, region=None):
        return self._call("DELETE", f"/v2.0/networks/{network_id}", region,
                          on_success=on_success, on_error=on_error)

    # -----------------------
    # Subnets
    # -----------------------
    def list_subnets(self, on_success=None, on_error=None, region=None):
        return self._call("GET", "/v2.0/subnets", region,
                          on_success=on_success, on_error=on_error, unwrap=_key("subnets"))

    def create_subnet(
        self,
        network_id: str,
        cidr: str,
        name: Optional[str] = None,
        *,
        ip_version: int = 4,
        gateway_ip: Optional[str] = None,
        enable_dhcp: Optional[bool] = None,
        dns_nameservers: Optional[List[str]] = None,
        allocation_pools: Optional[List[Dict[str, str]]] = None,
        tenant_id: Optional[str] = None,
        on_success=None,
        on_error=None,
        region=None,
    ):
        subnet: Dict[str, Any] = {"network_id": network_id, "cidr": cidr, "ip_version": ip_version}
        optional = {
            "name": name,
            "gateway_ip": gateway_ip,
            "enable_dhcp": enable_dhcp,
            "dns_nameservers": dns_nameservers,
            "allocation_pools": allocation_pools,
            "tenant_id": tenant_id,
        }
        subnet.update({k: v for k, v in optional.items() if v is not None})
        return self._call("POST", "/v2.0/subnets", region, {"subnet": subnet},
                          on_success, on_error, unwrap=_key("subnet"))

    # -----------------------
    # Routers
    # -----------------------
    def list_routers(self, on_success=None, on_error=None, region=None):
        return self._call("GET", "/v2.0/routers", region,
                          on_success=on_success, on_error=on_error, unwrap=_key("routers"))
