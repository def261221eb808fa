# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/wizard/provisioner.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fiwarelab.config.models import FiwareLabConfig
from fiwarelab.observers.dispatcher import EventBus
from fiwarelab.openstack.catalog import AccessInfo
from fiwarelab.openstack.keystone import AuthState, KeystoneSession
from fiwarelab.openstack.neutron import NeutronClient
from fiwarelab.openstack.nova import NovaClient
from fiwarelab.openstack.transport import Outcome, Transport
from fiwarelab.wizard.defaults import ssh_user_for

log = logging.getLogger("fiwarelab")


class ProvisioningError(RuntimeError):
    def __init__(self, errors: List[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


def auth_error_message(state: Any) -> str:
    if state == AuthState.AUTHENTICATION_ERROR:
        return "(401) Unauthorized."
    return f"Authentication failed (state={state})"


def _error_text(err: Any) -> str:
    return getattr(err, "message", None) or str(err)


@dataclass
class LaunchOptions:
    """Everything the user picks from before launching an instance."""
    region: str
    flavors: List[Dict[str, Any]] = field(default_factory=list)
    floating_ip_pools: List[Dict[str, Any]] = field(default_factory=list)
    security_groups: List[Dict[str, Any]] = field(default_factory=list)
    networks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def default_floating_ip_pool(self) -> Optional[str]:
        return self.floating_ip_pools[0].get("name") if self.floating_ip_pools else None

    @property
    def default_network(self) -> Optional[str]:
        return self.networks[0].get("name") if self.networks else None


class Provisioner:
    """
    Steps to get a VM on FIWARE Lab:

      1. authenticate()      - v2 login with username/password
      2. select_tenant()     - cloud projects visible to the user
      3. scope_to_tenant()   - v3 login scoped to the project, gives regions
      4. load_options()      - flavors, floating IP pools, security groups, networks
      5. launch()            - create the server

    Tenant listing is only available on the v2 endpoint and regions only on
    the v3 catalog, hence the two logins.
    """

    def __init__(
        self,
        config: FiwareLabConfig,
        *,
        transport: Optional[Transport] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.config = config
        transport = transport or Transport(
            verify_tls=config.identity.verify_tls,
            timeout=config.identity.timeout_seconds,
            bus=bus,
            run_id=run_id,
        )
        self.session = KeystoneSession(transport=transport, bus=bus, run_id=run_id)
        self.nova = NovaClient(self.session, proxy_prefix=config.proxy_prefix,
                               endpoint_type=config.endpoint_type)
        self.neutron = NeutronClient(self.session, proxy_prefix=config.proxy_prefix,
                                     endpoint_type=config.endpoint_type)
        self.tenant_id: Optional[str] = config.identity.tenant_id
        self.region: Optional[str] = config.region

    def _identity_url(self, url: str) -> str:
        return f"{self.config.proxy_prefix}{url}"

    def _login(self, identity_url: str, project_id: Optional[str] = None) -> AccessInfo:
        ident = self.config.identity
        self.session.init(self._identity_url(identity_url), ident.admin_url)
        out = self.session.authenticate(ident.username, ident.password, None, project_id)
        if not out.ok:
            raise ProvisioningError(auth_error_message(out.error))
        return out.result

    # -----------------------
    # Steps
    # -----------------------
    def authenticate(self) -> AccessInfo:
        errors = []
        if not self.config.identity.username:
            errors.append("Username required.")
        if not self.config.identity.password:
            errors.append("Password required.")
        if errors:
            raise ProvisioningError(errors)
        return self._login(self.config.identity.auth_url)

    def select_tenant(self) -> List[Dict[str, Any]]:
        """
        Cloud projects of the user. With exactly one, it becomes the tenant;
        with several, the first is preselected and all are returned.
        """
        out = self.session.list_tenants()
        if not out.ok:
            raise ProvisioningError(f"Could not list tenants: {_error_text(out.error)}")

        tenants = [t for t in (out.result or {}).get("tenants", []) if t.get("is_cloud_project")]
        if not tenants:
            raise ProvisioningError("No cloud project available for this user.")

        if self.tenant_id not in {t.get("id") for t in tenants}:
            self.tenant_id = tenants[0].get("id")
        log.info("Tenant candidates=%d selected=%s", len(tenants), self.tenant_id)
        return tenants

    def scope_to_tenant(self, tenant_id: Optional[str] = None) -> List[str]:
        """Scoped v3 login; returns the compute regions offered to the project."""
        tenant_id = tenant_id or self.tenant_id
        if not tenant_id:
            raise ProvisioningError("Tenant required.")
        self.tenant_id = tenant_id

        self._login(self.config.identity.auth_url_v3, project_id=tenant_id)
        regions = self.session.regions("compute")
        if not regions:
            raise ProvisioningError("No compute region available for this project.")
        if self.region not in regions:
            self.region = regions[0]
        log.info("Regions=%s selected=%s", regions, self.region)
        return regions

    def _fetch(self, out: Outcome, what: str) -> Any:
        if not out.ok:
            raise ProvisioningError(f"Could not load {what}: {_error_text(out.error)}")
        return out.result

    def load_options(self, region: Optional[str] = None) -> LaunchOptions:
        region = region or self.region
        if not region:
            raise ProvisioningError("Region required.")
        self.region = region

        flavors = self._fetch(self.nova.list_flavors(region=region), "flavors") or {}
        pools = self._fetch(self.nova.list_floating_ip_pools(region=region), "floating IP pools") or {}
        groups = self._fetch(self.nova.list_security_groups(region=region), "security groups") or {}
        networks = self._fetch(self.neutron.list_networks(region=region), "networks") or []

        return LaunchOptions(
            region=region,
            flavors=flavors.get("flavors", []),
            floating_ip_pools=pools.get("floating_ip_pools", []),
            security_groups=groups.get("security_groups", []),
            networks=[n for n in networks if n.get("router:external") is not True],
        )

    # -----------------------
    # Launch
    # -----------------------
    def build_server_request(self, options: LaunchOptions, images: List[Dict[str, Any]]) -> Dict[str, Any]:
        inst = self.config.instance
        errors = []
        if not inst.name:
            errors.append("Name required.")
        if not inst.network_name:
            errors.append("Network name required.")

        image = next((i for i in images if i.get("name") == inst.image_name), None)
        flavor = next((f for f in options.flavors if f.get("name") == inst.flavor_name), None)
        network = next((n for n in options.networks if n.get("name") == inst.network_name), None)
        if image is None:
            errors.append(f"Image {inst.image_name} not available in {options.region}.")
        if flavor is None:
            errors.append(f"Flavor {inst.flavor_name} not available in {options.region}.")
        if inst.network_name and network is None:
            errors.append(f"Network {inst.network_name} not available in {options.region}.")
        if errors:
            raise ProvisioningError(errors)

        return NovaClient.build_server(
            inst.name,
            image["id"],
            flavor["id"],
            key_name=inst.key_name,
            user_data=inst.user_data,
            security_groups=inst.security_groups or None,
            networks=[{"uuid": network["id"]}],
            metadata={"ssh_user": inst.ssh_user or ssh_user_for(inst.image_name)},
        )

    def launch(self, options: Optional[LaunchOptions] = None) -> Dict[str, Any]:
        options = options or self.load_options()
        images = self._fetch(self.nova.list_images(region=options.region), "images") or {}
        body = self.build_server_request(options, images.get("images", []))

        server = body["server"]
        out = self.nova.create_server(
            server["name"],
            server["imageRef"],
            server["flavorRef"],
            region=options.region,
            key_name=server.get("key_name"),
            user_data=self.config.instance.user_data,
            security_groups=self.config.instance.security_groups or None,
            networks=server["networks"],
            metadata=server.get("metadata"),
        )
        result = self._fetch(out, "server") or {}
        log.info("Server %s requested in %s", result.get("server", {}).get("id"), options.region)
        return result
