# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/openstack/admin.py

from __future__ import annotations

from typing import Any, Dict, Optional

from fiwarelab.openstack.errors import NotAuthenticatedError, ServiceUnavailableError
from fiwarelab.openstack.keystone import KeystoneSession
from fiwarelab.openstack.transport import Outcome


class IdentityAdmin:
    """
    Keystone v2 admin API (users, tenants, roles) on the session's admin URL.

    Endpoints used:
    - users, users/<id>, tenants/<id>/users
    - tenants, tenants/<id>
    - OS-KSADM/roles, [tenants/<tid>/]users/<uid>/roles[/OS-KSADM/<rid>]
    """

    def __init__(self, session: KeystoneSession):
        self.session = session

    def _call(self, method: str, path: str, body: Any = None, on_success=None, on_error=None) -> Outcome:
        if not self.session.authenticated:
            err = NotAuthenticatedError("identity admin: session is not authenticated")
        elif not self.session.admin_url:
            err = ServiceUnavailableError("identity admin: no admin URL configured")
        else:
            return self.session.transport.send(
                method,
                self.session.admin_url + path,
                body,
                self.session.token,
                (lambda result, *_: on_success(result)) if on_success else None,
                on_error,
            )
        if on_error is not None:
            on_error(err)
        return Outcome(ok=False, error=err)

    @staticmethod
    def _role_route(user_id: str, tenant_id: Optional[str]) -> str:
        if tenant_id is not None:
            return f"tenants/{tenant_id}/users/{user_id}/roles"
        return f"users/{user_id}/roles"

    # -----------------------
    # Users
    # -----------------------
    def create_user(self, username, password, tenant_id, email=None, enabled=True, on_success=None, on_error=None):
        body = {"user": {"name": username, "password": password, "tenantId": tenant_id,
                         "email": email, "enabled": enabled}}
        return self._call("POST", "users", body, on_success, on_error)

    def update_user(self, user_id, username, tenant_id, email=None, enabled=True, password=None,
                    on_success=None, on_error=None):
        user: Dict[str, Any] = {"name": username, "tenantId": tenant_id, "email": email, "enabled": enabled}
        if password is not None:
            user["password"] = password
        return self._call("PUT", f"users/{user_id}", {"user": user}, on_success, on_error)

    def list_users(self, on_success=None, on_error=None):
        return self._call("GET", "users", on_success=on_success, on_error=on_error)

    def list_tenant_users(self, tenant_id, on_success=None, on_error=None):
        return self._call("GET", f"tenants/{tenant_id}/users", on_success=on_success, on_error=on_error)

    def get_user(self, user_id, on_success=None, on_error=None):
        return self._call("GET", f"users/{user_id}", on_success=on_success, on_error=on_error)

    def delete_user(self, user_id, on_success=None, on_error=None):
        return self._call("DELETE", f"users/{user_id}", on_success=on_success, on_error=on_error)

    # -----------------------
    # Roles
    # -----------------------
    def list_roles(self, on_success=None, on_error=None):
        return self._call("GET", "OS-KSADM/roles", on_success=on_success, on_error=on_error)

    def list_user_roles(self, user_id, tenant_id=None, on_success=None, on_error=None):
        return self._call("GET", self._role_route(user_id, tenant_id),
                          on_success=on_success, on_error=on_error)

    def add_user_role(self, user_id, role_id, tenant_id=None, on_success=None, on_error=None):
        route = f"{self._role_route(user_id, tenant_id)}/OS-KSADM/{role_id}"
        return self._call("PUT", route, {}, on_success, on_error)

    def remove_user_role(self, user_id, role_id, tenant_id=None, on_success=None, on_error=None):
        route = f"{self._role_route(user_id, tenant_id)}/OS-KSADM/{role_id}"
        return self._call("DELETE", route, on_success=on_success, on_error=on_error)

    # -----------------------
    # Tenants
    # -----------------------
    def create_tenant(self, name, description=None, enabled=True, on_success=None, on_error=None):
        body = {"tenant": {"name": name, "description": description, "enabled": enabled}}
        return self._call("POST", "tenants", body, on_success, on_error)

    def update_tenant(self, tenant_id, name, description=None, enabled=True, on_success=None, on_error=None):
        body = {"tenant": {"id": tenant_id, "name": name, "description": description, "enabled": enabled}}
        return self._call("PUT", f"tenants/{tenant_id}", body, on_success, on_error)

    def delete_tenant(self, tenant_id, on_success=None, on_error=None):
        return self._call("DELETE", f"tenants/{tenant_id}", on_success=on_success, on_error=on_error)
