# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/nova.py

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from fiwarelab.openstack.service import ServiceClient


def encode_user_data(user_data: str) -> str:
    return base64.b64encode(user_data.encode("utf-8")).decode("ascii")


class NovaClient(ServiceClient):
    """Compute calls used to provision and inspect FIWARE Lab instances."""

    service_type = "compute"

    # -----------------------
    # Servers
    # -----------------------
    def list_servers(self, detailed=False, all_tenants=False, on_success=None, on_error=None, region=None):
        path = "/servers/detail" if detailed else "/servers"
        if all_tenants:
            path += f"?all_tenants={all_tenants}"
        return self._call("GET", path, region, on_success=on_success, on_error=on_error)

    def get_server(self, server_id, on_success=None, on_error=None, region=None):
        return self._call("GET", f"/servers/{server_id}", region,
                          on_success=on_success, on_error=on_error)

    @staticmethod
    def build_server(
        name: str,
        image_ref: str,
        flavor_ref: str,
        *,
        key_name: Optional[str] = None,
        user_data: Optional[str] = None,
        security_groups: Optional[List[str]] = None,
        min_count: int = 1,
        max_count: int = 1,
        availability_zone: Optional[str] = None,
        networks: Optional[List[Dict[str, Any]]] = None,
        block_device_mapping: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        server: Dict[str, Any] = {
            "name": name,
            "imageRef": image_ref,
            "flavorRef": flavor_ref,
        }
        if metadata:
            server["metadata"] = metadata
        if key_name is not None:
            server["key_name"] = key_name
        if user_data is not None:
            server["user_data"] = encode_user_data(user_data)
        if block_device_mapping is not None:
            server["block_device_mapping"] = block_device_mapping
        if security_groups is not None:
            server["security_groups"] = [{"name": g} for g in security_groups if g]
        server["min_count"] = min_count
        server["max_count"] = max_count
        if availability_zone is not None:
            server["availability_zone"] = availability_zone
        if networks is not None:
            server["networks"] = networks
        return {"server": server}

    def create_server(self, name, image_ref, flavor_ref, on_success=None, on_error=None, region=None, **options):
        body = self.build_server(name, image_ref, flavor_ref, **options)
        path = "/os-volumes_boot" if options.get("block_device_mapping") is not None else "/servers"
        return self._call("POST", path, region, body, on_success, on_error)

    def delete_server(self, server_id, on_success=None, on_error=None, region=None):
        return self._call("DELETE", f"/servers/{server_id}", region,
                          on_success=on_success, on_error=on_error)

    def server_action(self, server_id, action: Dict[str, Any], on_success=None, on_error=None, region=None):
        return self._call("POST", f"/servers/{server_id}/action", region, action, on_success, on_error)

    def start_server(self, server_id, on_success=None, on_error=None, region=None):
        return self.server_action(server_id, {"os-start": None}, on_success, on_error, region)

    def stop_server(self, server_id, on_success=None, on_error=None, region=None):
        return self.server_action(server_id, {"os-stop": None}, on_success, on_error, region)

    def reboot_server(self, server_id, hard=False, on_success=None, on_error=None, region=None):
        kind = "HARD" if hard else "SOFT"
        return self.server_action(server_id, {"reboot": {"type": kind}}, on_success, on_error, region)

    # -----------------------
    # Flavors / images
    # -----------------------
    def list_flavors(self, detailed=False, on_success=None, on_error=None, region=None):
        path = "/flavors/detail" if detailed else "/flavors"
        return self._call("GET", path, region, on_success=on_success, on_error=on_error)

    def list_images(self, detailed=False, on_success=None, on_error=None, region=None):
        path = "/images/detail" if detailed else "/images"
        return self._call("GET", path, region, on_success=on_success, on_error=on_error)

    # -----------------------
    # Keypairs
    # -----------------------
    def list_keypairs(self, on_success=None, on_error=None, region=None):
        return self._call("GET", "/os-keypairs", region, on_success=on_success, on_error=on_error)

    def create_keypair(self, name, public_key=None, on_success=None, on_error=None, region=None):
        keypair = {"name": name}
        if public_key is not None:
            keypair["public_key"] = public_key
        return self._call("POST", "/os-keypairs", region, {"keypair": keypair}, on_success, on_error)

    def delete_keypair(self, name, on_success=None, on_error=None, region=None):
        return self._call("DELETE", f"/os-keypairs/{name}", region,
                          on_success=on_success, on_error=on_error)

    # -----------------------
    # Security groups / floating IPs
    # -----------------------
    def list_security_groups(self, on_success=None, on_error=None, region=None):
        return self._call("GET", "/os-security-groups", region,
                          on_success=on_success, on_error=on_error)

    def list_floating_ip_pools(self, on_success=None, on_error=None, region=None):
        return self._call("GET", "/os-floating-ip-pools", region,
                          on_success=on_success, on_error=on_error)
