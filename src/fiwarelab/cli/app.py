# src/fiwarelab/cli/app.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import typer

from fiwarelab.config.loader import load_config
from fiwarelab.config.models import FiwareLabConfig
from fiwarelab.logging.log import init_logging
from fiwarelab.observers.dispatcher import EventBus
from fiwarelab.observers.jsonfile import JsonFileObserver
from fiwarelab.observers.logger import LoggerObserver
from fiwarelab.utils.serialize import to_jsonable
from fiwarelab.wizard.defaults import FIWARE_IMAGES
from fiwarelab.wizard.provisioner import Provisioner, ProvisioningError


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="FIWARE Lab provisioning CLI")


@dataclass
class CliState:
    cfg: FiwareLabConfig
    bus: EventBus
    run_id: str
    as_json: bool = False

    def provisioner(self) -> Provisioner:
        return Provisioner(self.cfg, bus=self.bus, run_id=self.run_id)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", envvar="FIWARELAB_CONFIG", help="Path to fiwarelab YAML config"
    ),
    username: Optional[str] = typer.Option(None, "--username", "-u", envvar="FIWARELAB_USERNAME"),
    password: Optional[str] = typer.Option(None, "--password", "-p", envvar="FIWARELAB_PASSWORD"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug output on the console"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    cfg = load_config(config)
    if username:
        cfg.identity.username = username
    if password:
        cfg.identity.password = password

    logger, run_id, log_path = init_logging(verbose=verbose)
    bus = EventBus()
    bus.subscribe(LoggerObserver(logger))
    bus.subscribe(JsonFileObserver(log_path.parent / f"{run_id}.jsonl"))
    ctx.obj = CliState(cfg=cfg, bus=bus, run_id=run_id, as_json=as_json)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _run(step: Callable[[], object]):
    try:
        return step()
    except ProvisioningError as exc:
        for err in exc.errors:
            typer.secho(err, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _show(state: CliState, data, lines: List[str]) -> None:
    if state.as_json:
        typer.echo(json.dumps(to_jsonable(data), indent=2, sort_keys=True))
        return
    for line in lines:
        typer.echo(line)


def _scoped(state: CliState, tenant: Optional[str]) -> Provisioner:
    p = state.provisioner()
    _run(p.authenticate)
    _run(p.select_tenant)
    _run(lambda: p.scope_to_tenant(tenant))
    return p


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def login(ctx: typer.Context):
    """Authenticate against the v2 identity endpoint."""
    state: CliState = ctx.obj
    p = state.provisioner()
    access = _run(p.authenticate)
    user = access.user.get("name") or access.user.get("id")
    _show(state, access, [f"Authenticated as {user}, token expires {access.token.expires}"])


@app.command()
def tenants(ctx: typer.Context):
    """List the cloud projects of the user."""
    state: CliState = ctx.obj
    p = state.provisioner()
    _run(p.authenticate)
    found = _run(p.select_tenant)
    lines = [
        f"{'*' if t.get('id') == p.tenant_id else ' '} {t.get('id')}  {t.get('name')}"
        for t in found
    ]
    _show(state, found, lines)


@app.command()
def regions(
    ctx: typer.Context,
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t", help="Tenant id (default: first cloud project)"),
):
    """List the compute regions offered to a tenant."""
    state: CliState = ctx.obj
    p = state.provisioner()
    _run(p.authenticate)
    _run(p.select_tenant)
    found = _run(lambda: p.scope_to_tenant(tenant))
    _show(state, found, [f"{'*' if r == p.region else ' '} {r}" for r in found])


@app.command()
def services(
    ctx: typer.Context,
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t"),
):
    """Show the service catalog of the scoped token."""
    state: CliState = ctx.obj
    p = _scoped(state, tenant)
    catalog = p.session.get_service_catalog() or []
    lines = [f"{s.type:<16} {s.name or '-':<16} {', '.join(s.regions())}" for s in catalog]
    _show(state, catalog, lines)


@app.command()
def images(ctx: typer.Context):
    """Images supported by the FIWARE Lab node driver."""
    state: CliState = ctx.obj
    _show(state, FIWARE_IMAGES, [f"{i.slug:<20} {i.name:<24} ssh_user={i.ssh_user}" for i in FIWARE_IMAGES])


@app.command()
def options(
    ctx: typer.Context,
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t"),
    region: Optional[str] = typer.Option(None, "--region", "-r"),
):
    """Flavors, floating IP pools, security groups and networks of a region."""
    state: CliState = ctx.obj
    p = _scoped(state, tenant)
    opts = _run(lambda: p.load_options(region))
    lines = [
        f"region:            {opts.region}",
        f"flavors:           {', '.join(f.get('name', '?') for f in opts.flavors)}",
        f"floating IP pools: {', '.join(x.get('name', '?') for x in opts.floating_ip_pools)}",
        f"security groups:   {', '.join(g.get('name', '?') for g in opts.security_groups)}",
        f"networks:          {', '.join(n.get('name', '?') for n in opts.networks)}",
    ]
    _show(state, opts, lines)


@app.command()
def launch(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Instance name"),
    tenant: Optional[str] = typer.Option(None, "--tenant", "-t"),
    region: Optional[str] = typer.Option(None, "--region", "-r"),
    image: Optional[str] = typer.Option(None, "--image", help="Image slug, e.g. base_ubuntu_14.04"),
    flavor: Optional[str] = typer.Option(None, "--flavor"),
    network: Optional[str] = typer.Option(None, "--network"),
    key_name: Optional[str] = typer.Option(None, "--key-name"),
    security_group: Optional[List[str]] = typer.Option(None, "--security-group", "-s"),
):
    """Launch an instance with the configured (or given) settings."""
    state: CliState = ctx.obj
    inst = state.cfg.instance
    if name:
        inst.name = name
    if image:
        inst.image_name = image
    if flavor:
        inst.flavor_name = flavor
    if network:
        inst.network_name = network
    if key_name:
        inst.key_name = key_name
    if security_group:
        inst.security_groups = list(security_group)

    p = _scoped(state, tenant)
    opts = _run(lambda: p.load_options(region))
    if not inst.network_name:
        inst.network_name = opts.default_network
    result = _run(lambda: p.launch(opts))

    server = result.get("server", {})
    _show(state, result, [f"Server {server.get('id')} requested in {opts.region}"])


if __name__ == "__main__":
    app()
