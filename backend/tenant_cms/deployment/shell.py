# tenant_cms/deployment/shell.py
"""
Subprocess helpers for nginx/certbot.

Commands are always argument lists run without a shell, and every domain or
email that reaches an argument list has been through `validate_domain` /
`validate_email` first.
"""
from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from typing import Optional, Sequence

from flask import current_app

NGINX_TIMEOUT = 60
CERTBOT_TIMEOUT = 120
CERTBOT_RENEW_TIMEOUT = 300

# RFC 1123 hostname: dot-separated labels of letters, digits and inner hyphens,
# at least one dot, TLD alphabetic. Only local names may carry a :port
_LABEL = r"(?!-)[a-z0-9-]{1,63}(?<!-)"
DOMAIN_RE = re.compile(rf"^(?:{_LABEL}\.)+[a-z]{{2,63}}$")
LOCAL_DOMAIN_RE = re.compile(rf"^{_LABEL}(?::\d{{1,5}})?$")
PORT_RE = re.compile(r":\d{1,5}$")
EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,63}$")

MAX_DOMAIN_LENGTH = 253


class DeploymentError(Exception):
    """Raised when an nginx/certbot step fails where the caller asked to be told."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


@dataclass
class CommandResult:
    args: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part).strip()


@dataclass
class DeploymentResult:
    success: bool
    message: str
    output: str = ""
    path: Optional[str] = None
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {"success": self.success, "message": self.message}
        if self.output:
            data["output"] = self.output
        if self.path:
            data["path"] = self.path
        data.update(self.details)
        return data


def clean_domain(value: Optional[str]) -> str:
    """Strips scheme, path and trailing slash and lowercases; does not validate."""
    domain = (value or "").strip().lower()
    domain = re.sub(r"^[a-z][a-z0-9+.-]*://", "", domain)
    return domain.split("/", 1)[0].rstrip(".")


def strip_port(domain: str) -> str:
    return PORT_RE.sub("", domain or "")


def is_valid_domain(value: Optional[str], allow_local: bool = False) -> bool:
    domain = value or ""
    if not domain or len(domain) > MAX_DOMAIN_LENGTH or domain != domain.lower():
        return False
    if DOMAIN_RE.match(domain):
        return True
    return allow_local and bool(LOCAL_DOMAIN_RE.match(domain))


def validate_domain(value: Optional[str], allow_local: bool = False) -> str:
    """Cleaned domain, or ValueError if it is not a plain hostname."""
    domain = clean_domain(value)
    if not is_valid_domain(domain, allow_local=allow_local):
        raise ValueError(f"Invalid domain: {value!r}")
    return domain


def validate_email(value: Optional[str]) -> str:
    email = (value or "").strip()
    if not EMAIL_RE.match(email):
        raise ValueError(f"Invalid email address: {value!r}")
    return email


def run_command(args: Sequence[str], timeout: int) -> CommandResult:
    """Runs `args` without a shell; a missing binary or timeout is a failed result, not an exception."""
    args = [str(arg) for arg in args]
    current_app.logger.info(f"Running: {' '.join(args)}")
    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
            shell=False,
        )
    except FileNotFoundError as exc:
        current_app.logger.error(f"Command not found: {args[0]}")
        return CommandResult(args, 127, stderr=str(exc))
    except subprocess.TimeoutExpired:
        current_app.logger.error(f"Command timed out after {timeout}s: {' '.join(args)}")
        return CommandResult(args, -1, stderr=f"Timed out after {timeout}s")

    result = CommandResult(args, completed.returncode, completed.stdout or "", completed.stderr or "")
    if not result.ok:
        current_app.logger.warning(f"Command failed ({result.returncode}): {' '.join(args)}: {result.output}")
    return result


def is_production() -> bool:
    return current_app.config.get("DEPLOYMENT_MODE", "development") == "production"
