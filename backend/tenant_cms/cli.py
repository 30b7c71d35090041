from datetime import timezone

import click
from dateutil.parser import isoparse
from flask.cli import AppGroup

from tenant_cms.application.cms.publish_scheduled import publish_scheduled
from tenant_cms.application.settings import SettingService
from tenant_cms.application.tenants import TenantService
from tenant_cms.deployment.nginx_config import NginxConfigService
from tenant_cms.deployment.shell import DeploymentError
from tenant_cms.deployment.ssl import SSLService

tenants_cli = AppGroup("tenants", help="Tenant content maintenance.")
ssl_cli = AppGroup("ssl", help="Let's Encrypt certificates.")
nginx_cli = AppGroup("nginx", help="NGINX configuration.")
settings_cli = AppGroup("settings", help="Tenant settings.")
content_cli = AppGroup("content", help="Scheduled content.")


def _tenant(tenant_id):
    tenant = TenantService().get_by_id(tenant_id)
    if tenant is None:
        raise click.ClickException(f"Tenant {tenant_id} not found")
    return tenant


def _echo_counts(counts):
    for name, count in counts.items():
        click.echo(f"  {name}: {count}")


@tenants_cli.command("clone")
@click.argument("tenant_id")
@click.option("--overwrite", is_flag=True, help="Overwrite rows the tenant already has.")
@click.option("--source", "source_id", default=None, help="Source tenant id (defaults to MASTER_TENANT_ID).")
def clone_tenant_content(tenant_id, overwrite, source_id):
    """Copy master (or --source) content into TENANT_ID."""
    tenant = _tenant(tenant_id)
    counts = TenantService().clone_content(
        tenant, skip_existing=not overwrite, source_tenant_id=source_id
    )
    click.echo(f"Cloned content into {tenant.name} ({tenant.id}):")
    _echo_counts(counts)


@tenants_cli.command("duplicate")
@click.argument("source_id")
@click.argument("name")
@click.option("--domain", default=None, help="Primary domain of the new tenant.")
def duplicate_tenant(source_id, name, domain):
    """Create an inactive copy of SOURCE_ID named NAME, content included."""
    tenant = TenantService().duplicate(_tenant(source_id), name, domain=domain)
    click.echo(f"Created tenant {tenant.name} ({tenant.id}, slug {tenant.slug})")


@ssl_cli.command("renew")
def renew_certificates():
    """Run `certbot renew` for every certificate on this host."""
    result = SSLService().renew_all()
    click.echo(result.message)
    if result.output:
        click.echo(result.output)
    if not result.success:
        raise click.ClickException("Certificate renewal failed")


@nginx_cli.command("reload")
def reload_nginx():
    """Test the NGINX configuration and reload it."""
    try:
        NginxConfigService().reload_nginx()
    except DeploymentError as exc:
        raise click.ClickException(f"{exc}\n{exc.output}") from exc
    click.echo("NGINX reloaded")


@settings_cli.command("init")
@click.argument("tenant_id")
@click.option("--overwrite", is_flag=True, help="Reset keys that already exist to their defaults.")
def init_settings(tenant_id, overwrite):
    """Write the default settings for TENANT_ID."""
    tenant = _tenant(tenant_id)
    written = SettingService(tenant.id).initialize_defaults(overwrite=overwrite)
    click.echo(f"Initialized {written} settings for {tenant.name}")


@content_cli.command("publish-scheduled")
@click.option("--as-of", "as_of", default=None, help="Publish what is due at this ISO 8601 time instead of now.")
def publish_scheduled_content(as_of):
    """Publish pages and services whose scheduled time has passed."""
    now = None
    if as_of:
        try:
            now = isoparse(as_of)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--as-of") from exc
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
    counts = publish_scheduled(now)
    click.echo(f"Published {counts['pages']} page(s) and {counts['services']} service(s).")
    if counts["failed"]:
        raise click.ClickException(f"{counts['failed']} scheduled page(s) could not be published")


def register_cli(app):
    for group in (tenants_cli, ssl_cli, nginx_cli, settings_cli, content_cli):
        app.cli.add_command(group)
