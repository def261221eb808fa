import logging
from pathlib import Path
import textwrap

import pytest
import requests
from typer.testing import CliRunner

from fiwarelab.cli.app import app

V2 = "https://cloud.example.org:5000/v2.0/"
V3 = "https://cloud.example.org:5000/v3/"
NOVA = "http://nova.spain/v2/p1"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path: Path, fake_http):
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("FIWARELAB_CONFIG", "FIWARELAB_USERNAME", "FIWARELAB_PASSWORD", "FIWARELAB_SECRETS_FILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        requests.Session, "request",
        lambda self, method, url, **kw: fake_http.request(method, url, **kw),
    )
    yield
    logger = logging.getLogger("fiwarelab")
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    f = tmp_path / "fiwarelab.yaml"
    f.write_text(textwrap.dedent(f"""
        identity:
          auth_url: {V2}
          auth_url_v3: {V3}
          username: alice
          password: secret
        instance:
          name: vm1
    """))
    return f


@pytest.fixture
def cloud(fake_http, v2_access, v3_token):
    fake_http.route("POST", V2 + "tokens", 200, v2_access)
    fake_http.route("GET", V2 + "tenants", 200, {"tenants": [
        {"id": "p1", "name": "alice cloud", "is_cloud_project": True},
    ]})
    fake_http.route("POST", V3 + "auth/tokens", 201, v3_token, headers={"X-Subject-Token": "v3tok"})
    fake_http.route("GET", NOVA + "/flavors", 200, {"flavors": [{"id": "f1", "name": "m1.small"}]})
    fake_http.route("GET", NOVA + "/os-floating-ip-pools", 200, {"floating_ip_pools": []})
    fake_http.route("GET", NOVA + "/os-security-groups", 200, {"security_groups": [{"name": "default"}]})
    fake_http.route("GET", "http://neutron.spain/v2.0/networks", 200, {"networks": [
        {"id": "n1", "name": "node-int-net-01"},
    ]})
    fake_http.route("GET", NOVA + "/images", 200, {"images": [{"id": "img1", "name": "base_ubuntu_14.04"}]})
    fake_http.route("POST", NOVA + "/servers", 202, {"server": {"id": "s1"}})
    return fake_http


def test_images_needs_no_cloud(fake_http):
    result = runner.invoke(app, ["images"])
    assert result.exit_code == 0, result.output
    assert "base_centos_7" in result.output
    assert fake_http.calls == []


def test_login(cloud, config_file):
    result = runner.invoke(app, ["-c", str(config_file), "login"])
    assert result.exit_code == 0, result.output
    assert "Authenticated as alice" in result.output


def test_login_without_credentials_fails(fake_http):
    result = runner.invoke(app, ["login"])
    assert result.exit_code == 1
    assert "Username required." in result.output
    assert fake_http.calls == []


def test_login_credentials_from_options(cloud, tmp_path: Path):
    f = tmp_path / "bare.yaml"
    f.write_text(f"identity:\n  auth_url: {V2}\n")
    result = runner.invoke(app, ["-c", str(f), "-u", "alice", "-p", "secret", "login"])
    assert result.exit_code == 0, result.output
    assert cloud.calls[0].body["auth"]["passwordCredentials"] == {"username": "alice", "password": "secret"}


def test_unauthorized(fake_http, config_file):
    fake_http.route("POST", V2 + "tokens", 401, text="denied")
    result = runner.invoke(app, ["-c", str(config_file), "login"])
    assert result.exit_code == 1
    assert "(401) Unauthorized." in result.output


def test_tenants(cloud, config_file):
    result = runner.invoke(app, ["-c", str(config_file), "tenants"])
    assert result.exit_code == 0, result.output
    assert "* p1  alice cloud" in result.output


def test_regions_as_json(cloud, config_file):
    result = runner.invoke(app, ["-c", str(config_file), "--json", "regions"])
    assert result.exit_code == 0, result.output
    assert '"Spain2"' in result.output
    assert '"Zurich2"' in result.output


def test_services(cloud, config_file):
    result = runner.invoke(app, ["-c", str(config_file), "services"])
    assert result.exit_code == 0, result.output
    assert "compute" in result.output and "Spain2, Zurich2" in result.output


def test_launch(cloud, config_file):
    result = runner.invoke(app, ["-c", str(config_file), "launch", "--name", "web1", "-s", "default"])
    assert result.exit_code == 0, result.output
    assert "Server s1 requested in Spain2" in result.output

    body = cloud.calls_to(NOVA + "/servers", "POST")[0].body["server"]
    assert body["name"] == "web1"
    assert body["networks"] == [{"uuid": "n1"}]
    assert body["security_groups"] == [{"name": "default"}]


def test_run_log_files_are_written(cloud, config_file, tmp_path: Path):
    runner.invoke(app, ["-c", str(config_file), "login"])
    logs = tmp_path / ".fiwarelab" / "logs"
    assert list(logs.glob("fiwarelab-*.log"))
    assert list(logs.glob("*.jsonl"))
