import os
import subprocess

import pytest

from tenant_cms.deployment.nginx_config import NginxConfigService, config_filename
from tenant_cms.deployment.shell import run_command, validate_domain, validate_email
from tenant_cms.deployment.ssl import SSLService
from tenant_cms.deployment.tenant_deployment import TenantDeploymentService

from conftest import make_tenant


class FakeRunner:
    """Stands in for subprocess.run; replays (returncode, stdout) pairs and records every call."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append((list(args), kwargs))
        returncode, stdout = self.results.pop(0) if self.results else (0, "")
        return subprocess.CompletedProcess(args, returncode, stdout, "")

    @property
    def commands(self):
        return [args for args, _ in self.calls]


@pytest.fixture()
def runner(monkeypatch):
    fake = FakeRunner()
    monkeypatch.setattr("tenant_cms.deployment.shell.subprocess.run", fake)
    return fake


@pytest.fixture()
def production(app, tmp_path):
    available = tmp_path / "sites-available"
    enabled = tmp_path / "sites-enabled"
    available.mkdir()
    enabled.mkdir()
    app.config.update(
        DEPLOYMENT_MODE="production",
        NGINX_SITES_AVAILABLE=str(available),
        NGINX_SITES_ENABLED=str(enabled),
        SSL_EMAIL="ops@example.com",
    )
    return available, enabled


def _dev_config(app, domain):
    return os.path.join(app.config["NGINX_DEV_CONFIG_DIR"], config_filename(domain))


# ------------------------
# Input validation
# ------------------------

@pytest.mark.parametrize("value, expected", [
    ("example.com", "example.com"),
    ("Sub.Example.COM", "sub.example.com"),
    ("https://shop.example.co.uk/path", "shop.example.co.uk"),
])
def test_validate_domain_accepts_hostnames(value, expected):
    assert validate_domain(value) == expected


@pytest.mark.parametrize("value", [
    "",
    None,
    "localhost",
    "evil.com; rm -rf /",
    "$(reboot).example.com",
    "`id`.example.com",
    "exa mple.com",
    "-lead.example.com",
    "example.com\nserver_name other",
    ("a" * 64) + ".com",
    "example.123",
    "example.com:8080",
])
def test_validate_domain_rejects_everything_else(value):
    with pytest.raises(ValueError):
        validate_domain(value)


def test_local_domains_need_opt_in():
    assert validate_domain("localhost:3000", allow_local=True) == "localhost:3000"
    with pytest.raises(ValueError):
        validate_domain("localhost:3000")


@pytest.mark.parametrize("value", ["", "ops", "ops@example", "ops@example.com; reboot", "--email=x@y.com x", "a b@example.com"])
def test_validate_email_rejects_bad_addresses(value):
    with pytest.raises(ValueError):
        validate_email(value)


def test_validate_email_accepts_plain_addresses():
    assert validate_email(" ops+ssl@mail.example.com ") == "ops+ssl@mail.example.com"


# ------------------------
# Command runner
# ------------------------

def test_run_command_never_uses_a_shell(app, runner):
    result = run_command(["nginx", "-t"], timeout=5)
    assert result.ok
    args, kwargs = runner.calls[0]
    assert args == ["nginx", "-t"]
    assert kwargs["shell"] is False
    assert kwargs["timeout"] == 5


def test_run_command_missing_binary(app, monkeypatch):
    def missing(args, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr("tenant_cms.deployment.shell.subprocess.run", missing)
    result = run_command(["certbot", "renew"], timeout=5)
    assert result.returncode == 127
    assert not result.ok


def test_run_command_timeout(app, monkeypatch):
    def slow(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr("tenant_cms.deployment.shell.subprocess.run", slow)
    result = run_command(["certbot", "renew"], timeout=1)
    assert result.returncode == -1
    assert "Timed out" in result.output


# ------------------------
# NGINX
# ------------------------

def test_generate_config_in_development_writes_file(app, tenant, runner):
    result = NginxConfigService().generate_config(tenant, "bluefern.example.com", "/var/www/tenants/blue-fern")

    assert result.success
    assert result.path == _dev_config(app, "bluefern.example.com")
    assert result.path.endswith("bluefern_example_com.conf")
    with open(result.path, encoding="utf-8") as fh:
        content = fh.read()
    assert "server_name bluefern.example.com;" in content
    assert "root /var/www/tenants/blue-fern/out;" in content
    assert f'add_header X-Tenant-ID "{tenant.id}" always;' in content
    assert "listen 443 ssl http2;" in content
    # nothing runs in development
    assert runner.calls == []


def test_generate_http_only_config(app, tenant, runner):
    result = NginxConfigService().generate_config(tenant, "bluefern.example.com", "/srv/blue", https=False)
    with open(result.path, encoding="utf-8") as fh:
        content = fh.read()
    assert "listen 443" not in content
    assert "HTTP only" in content


def test_generate_config_rejects_bad_domain(app, tenant, runner):
    result = NginxConfigService().generate_config(tenant, "evil.com; rm -rf /", "/srv/blue")
    assert not result.success
    assert not os.path.exists(app.config["NGINX_DEV_CONFIG_DIR"])


def test_tenant_name_cannot_break_out_of_the_comment(app, runner):
    tenant = make_tenant("Evil\nserver { listen 1; }", slug="evil", domain="evil.example.com")
    result = NginxConfigService().generate_config(tenant, "evil.example.com", "/srv/evil")
    with open(result.path, encoding="utf-8") as fh:
        first_line = fh.readline()
    assert first_line == "# NGINX configuration for Evil server { listen 1; }\n"


def test_generate_config_in_production_activates_site(app, tenant, production, runner):
    available, enabled = production
    result = NginxConfigService().generate_config(tenant, "bluefern.example.com", "/srv/blue")

    assert result.success
    assert result.path == str(available / "bluefern_example_com.conf")
    assert os.path.islink(enabled / "bluefern_example_com.conf")
    assert runner.commands == [["nginx", "-t"], ["nginx", "-s", "reload"]]


def test_failed_nginx_test_removes_the_new_site(app, tenant, production, runner):
    available, enabled = production
    runner.results = [(1, "nginx: [emerg] unexpected end of file")]

    result = NginxConfigService().generate_config(tenant, "bluefern.example.com", "/srv/blue")

    assert not result.success
    assert "emerg" in result.output
    assert not os.path.exists(available / "bluefern_example_com.conf")
    assert not os.path.lexists(enabled / "bluefern_example_com.conf")
    assert runner.commands == [["nginx", "-t"]]


# ------------------------
# SSL
# ------------------------

def test_ssl_is_skipped_in_development(app, tenant, runner):
    app.config["SSL_EMAIL"] = "ops@example.com"
    result = SSLService().generate_certificate(tenant)

    assert result.success
    assert result.to_dict()["command"] == [
        "certbot", "--nginx", "-d", "bluefern.example.com", "-d", "www.bluefern.example.com",
        "--non-interactive", "--agree-tos", "--email", "ops@example.com", "--redirect",
    ]
    assert runner.calls == []


def test_ssl_rejects_unsafe_email(app, tenant, runner):
    app.config["SSL_EMAIL"] = "ops@example.com --staging"
    result = SSLService().generate_certificate(tenant)
    assert not result.success
    assert runner.calls == []


def test_domains_with_a_port_never_reach_certbot_or_nginx(app, tenant, production, runner):
    assert not TenantDeploymentService().add_domain(tenant, "shop.bluefern.example.com:8443").success
    assert tenant.additional_domains in (None, [])

    tenant.domain = "bluefern.example.com:8443"
    assert not SSLService().generate_certificate(tenant).success
    assert runner.calls == []


def test_ssl_without_domain(app, runner):
    result = SSLService().generate_certificate(make_tenant("No Domain"))
    assert not result.success


def test_ssl_retries_without_www(app, tenant, production, runner):
    runner.results = [(1, "DNS problem: NXDOMAIN looking up A for www.bluefern.example.com"),
                      (0, "Successfully received certificate")]

    result = SSLService().generate_certificate(tenant)

    assert result.success
    assert len(runner.commands) == 2
    assert "www.bluefern.example.com" in runner.commands[0]
    assert "www.bluefern.example.com" not in runner.commands[1]
    assert tenant.ssl_status == "active"
    assert tenant.ssl_expires_at is not None


def test_ssl_failure_marks_tenant(app, tenant, production, runner):
    runner.results = [(1, "boom"), (1, "boom again")]
    result = SSLService().generate_certificate(tenant)
    assert not result.success
    assert tenant.ssl_status == "failed"


def test_ssl_renew(app, production, runner):
    result = SSLService().renew_all()
    assert result.success
    assert runner.commands == [["certbot", "renew"]]


# ------------------------
# Tenant deployment
# ------------------------

def test_deploy_writes_a_config_per_domain(app, tenant, runner):
    tenant.additional_domains = ["shop.bluefern.example.com"]
    result = TenantDeploymentService().deploy(tenant)

    assert result.success
    assert result.path == "/var/www/tenants/blue-fern"
    assert os.path.exists(_dev_config(app, "bluefern.example.com"))
    assert os.path.exists(_dev_config(app, "shop.bluefern.example.com"))
    assert tenant.deployment_status == "deployed"
    assert tenant.nginx_status == "configured"
    assert tenant.nginx_config_path == _dev_config(app, "bluefern.example.com")

    status = TenantDeploymentService().get_status(tenant)
    assert status["status"] == "deployed"
    assert status["domains"] == ["bluefern.example.com", "shop.bluefern.example.com"]
    assert all(entry["exists"] for entry in status["configs"].values())
    assert status["certificate_installed"] is False


def test_deploy_without_domains(app, runner):
    result = TenantDeploymentService().deploy(make_tenant("No Domain"))
    assert not result.success


def test_add_and_remove_domains(app, tenant, runner):
    deployment = TenantDeploymentService()

    assert deployment.add_domain(tenant, "Shop.BlueFern.example.com").success
    assert tenant.additional_domains == ["shop.bluefern.example.com"]
    assert os.path.exists(_dev_config(app, "shop.bluefern.example.com"))

    assert not deployment.add_domain(tenant, "bad domain").success
    assert not deployment.remove_domain(tenant, "bluefern.example.com").success

    assert deployment.remove_domain(tenant, "shop.bluefern.example.com").success
    assert tenant.additional_domains == []
    assert not os.path.exists(_dev_config(app, "shop.bluefern.example.com"))


def test_undeploy(app, tenant, runner):
    deployment = TenantDeploymentService()
    deployment.deploy(tenant)
    result = deployment.undeploy(tenant)

    assert result.success
    assert tenant.deployment_status == "removed"
    assert tenant.deployed_at is None
    assert not os.path.exists(_dev_config(app, "bluefern.example.com"))
