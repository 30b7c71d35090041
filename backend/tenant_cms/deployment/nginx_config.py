# tenant_cms/deployment/nginx_config.py
from __future__ import annotations

import os
from typing import Dict, Optional

from flask import current_app

from tenant_cms.models.base import utc_now

from .shell import (
    NGINX_TIMEOUT,
    DeploymentError,
    DeploymentResult,
    is_production,
    run_command,
    validate_domain,
)

HTTPS_TEMPLATE = """\
# NGINX configuration for {tenant_name}
# Domain: {domain}
# Generated: {generated_at}

server {{
    listen 80;
    listen [::]:80;
    server_name {domain};

    # Redirect HTTP to HTTPS
    return 301 https://$server_name$request_uri;
}}

server {{
    listen 443 ssl http2;
    listen [::]:443 ssl http2;
    server_name {domain};

    # SSL (managed by certbot / Let's Encrypt)
    ssl_certificate /etc/letsencrypt/live/{domain}/fullchain.pem;
    ssl_certificate_key /etc/letsencrypt/live/{domain}/privkey.pem;
    include /etc/letsencrypt/options-ssl-nginx.conf;
    ssl_dhparam /etc/letsencrypt/ssl-dhparams.pem;

    root {root_path};
    index index.html;

    gzip on;
    gzip_vary on;
    gzip_min_length 1024;
    gzip_proxied expired no-cache no-store private must-revalidate auth;
    gzip_types text/plain text/css text/xml text/javascript application/x-javascript application/xml application/javascript application/json;

    add_header X-Frame-Options "SAMEORIGIN" always;
    add_header X-Content-Type-Options "nosniff" always;
    add_header Referrer-Policy "strict-origin-when-cross-origin" always;
    add_header X-Tenant-ID "{tenant_id}" always;

    location ~* \\.(jpg|jpeg|png|gif|ico|css|js|pdf|woff|woff2|ttf|eot|svg)$ {{
        expires 30d;
        add_header Cache-Control "public, immutable";
        try_files $uri =404;
    }}

    location / {{
        try_files $uri $uri.html $uri/ /index.html;
    }}

    location /api/ {{
        proxy_pass {upstream};
        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection 'upgrade';
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_set_header X-Tenant-Domain $host;
        proxy_cache_bypass $http_upgrade;
        proxy_read_timeout 60s;
        proxy_connect_timeout 60s;
    }}

    location /health {{
        access_log off;
        return 200 'OK';
        add_header Content-Type text/plain;
    }}

    location ~ /\\. {{
        deny all;
    }}

    access_log /var/log/nginx/{log_name}_access.log;
    error_log /var/log/nginx/{log_name}_error.log;
}}
"""

HTTP_ONLY_TEMPLATE = """\
# NGINX configuration for {tenant_name} (HTTP only)
# Domain: {domain}
# Generated: {generated_at}

server {{
    listen 80;
    listen [::]:80;
    server_name {domain};

    root {root_path};
    index index.html;

    gzip on;
    gzip_vary on;
    gzip_min_length 1024;
    gzip_types text/plain text/css text/xml text/javascript application/x-javascript application/xml application/javascript application/json;

    add_header X-Tenant-ID "{tenant_id}" always;

    location ~* \\.(jpg|jpeg|png|gif|ico|css|js|pdf|woff|woff2|ttf|eot|svg)$ {{
        expires 7d;
        add_header Cache-Control "public";
        try_files $uri =404;
    }}

    location / {{
        try_files $uri $uri.html $uri/ /index.html;
    }}

    location /api/ {{
        proxy_pass {upstream};
        proxy_http_version 1.1;
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_set_header X-Tenant-Domain $host;
    }}

    location /health {{
        access_log off;
        return 200 'OK';
        add_header Content-Type text/plain;
    }}

    location ~ /\\. {{
        deny all;
    }}

    access_log /var/log/nginx/{log_name}_access.log;
    error_log /var/log/nginx/{log_name}_error.log;
}}
"""


def sanitize_domain(domain: str) -> str:
    return domain.replace(".", "_").replace(":", "_")


def config_filename(domain: str) -> str:
    return f"{sanitize_domain(domain)}.conf"


def _context(tenant, domain: str, deployment_path: str) -> Dict[str, str]:
    # Tenant name ends up in a comment line only; newlines would break out of it
    tenant_name = " ".join(str(tenant.name or "").split())
    return {
        "tenant_name": tenant_name,
        "tenant_id": tenant.id,
        "domain": domain,
        "generated_at": utc_now().isoformat(),
        "root_path": f"{deployment_path.rstrip('/')}/out",
        "upstream": current_app.config.get("BACKEND_UPSTREAM", "http://127.0.0.1:8000"),
        "log_name": sanitize_domain(domain),
    }


def build_config(tenant, domain: str, deployment_path: str) -> str:
    """HTTP->HTTPS redirect plus the HTTPS server block."""
    return HTTPS_TEMPLATE.format(**_context(tenant, validate_domain(domain, allow_local=True), deployment_path))


def build_http_only_config(tenant, domain: str, deployment_path: str) -> str:
    return HTTP_ONLY_TEMPLATE.format(**_context(tenant, validate_domain(domain, allow_local=True), deployment_path))


class NginxConfigService:
    """
    Writes per-domain server blocks. In development the file only lands in
    NGINX_DEV_CONFIG_DIR; in production it goes to sites-available, gets
    symlinked into sites-enabled, is checked with `nginx -t` and nginx is
    reloaded.
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or current_app.config
        self.sites_available = config.get("NGINX_SITES_AVAILABLE", "/etc/nginx/sites-available")
        self.sites_enabled = config.get("NGINX_SITES_ENABLED", "/etc/nginx/sites-enabled")
        self.dev_dir = config.get("NGINX_DEV_CONFIG_DIR", "storage/nginx")
        self.binary = config.get("NGINX_BINARY", "nginx")

    def _dev_path(self, domain: str) -> str:
        base = self.dev_dir
        if not os.path.isabs(base):
            base = os.path.join(current_app.root_path, base)
        return os.path.join(base, config_filename(domain))

    def config_path(self, domain: str) -> str:
        if is_production():
            return os.path.join(self.sites_available, config_filename(domain))
        return self._dev_path(domain)

    def generate_config(self, tenant, domain: str, deployment_path: str, https: bool = True) -> DeploymentResult:
        try:
            domain = validate_domain(domain, allow_local=True)
        except ValueError as exc:
            return DeploymentResult(False, str(exc))

        builder = build_config if https else build_http_only_config
        content = builder(tenant, domain, deployment_path)
        filename = config_filename(domain)

        if not is_production():
            path = self._dev_path(domain)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(content)
            current_app.logger.info(f"NGINX config generated (dev mode) for {domain}: {path}")
            return DeploymentResult(True, f"Config written for {domain}", path=path, details={"mode": "development"})

        path = os.path.join(self.sites_available, filename)
        link = os.path.join(self.sites_enabled, filename)
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(content)
            if not os.path.lexists(link):
                os.symlink(path, link)
        except OSError as exc:
            current_app.logger.error(f"Failed to write NGINX config for {domain}: {exc}")
            return DeploymentResult(False, f"Failed to write config for {domain}: {exc}")

        test = self.test_config()
        if not test.success:
            # Leave nginx as it was before this domain
            for stale in (link, path):
                if os.path.lexists(stale):
                    os.remove(stale)
            current_app.logger.error(f"NGINX config test failed for {domain}: {test.output}")
            return DeploymentResult(False, "NGINX configuration test failed", output=test.output)

        reload = run_command([self.binary, "-s", "reload"], NGINX_TIMEOUT)
        if not reload.ok:
            return DeploymentResult(False, "NGINX reload failed", output=reload.output, path=path)

        current_app.logger.info(f"NGINX config generated and activated for {domain}: {path}")
        return DeploymentResult(True, f"Config activated for {domain}", output=test.output, path=path,
                                details={"mode": "production", "symlink_path": link})

    def remove_config(self, domain: str) -> DeploymentResult:
        try:
            domain = validate_domain(domain, allow_local=True)
        except ValueError as exc:
            return DeploymentResult(False, str(exc))

        if not is_production():
            path = self._dev_path(domain)
            if os.path.exists(path):
                os.remove(path)
            return DeploymentResult(True, f"Config removed for {domain}", path=path)

        filename = config_filename(domain)
        for stale in (os.path.join(self.sites_enabled, filename), os.path.join(self.sites_available, filename)):
            if os.path.lexists(stale):
                os.remove(stale)

        try:
            self.reload_nginx()
        except DeploymentError as exc:
            return DeploymentResult(False, str(exc), output=exc.output)
        current_app.logger.info(f"NGINX config removed for {domain}")
        return DeploymentResult(True, f"Config removed for {domain}")

    def test_config(self) -> DeploymentResult:
        result = run_command([self.binary, "-t"], NGINX_TIMEOUT)
        return DeploymentResult(result.ok, "Configuration valid" if result.ok else "Configuration invalid",
                                output=result.output)

    def reload_nginx(self) -> bool:
        test = self.test_config()
        if not test.success:
            raise DeploymentError("NGINX configuration test failed", test.output)
        result = run_command([self.binary, "-s", "reload"], NGINX_TIMEOUT)
        if not result.ok:
            raise DeploymentError("NGINX reload failed", result.output)
        current_app.logger.info("NGINX reloaded")
        return True

    def tenant_configs(self, tenant) -> Dict[str, dict]:
        configs = {}
        for domain in tenant.all_domains():
            path = self.config_path(domain)
            exists = os.path.exists(path)
            configs[domain] = {"path": path, "exists": exists}
        return configs
