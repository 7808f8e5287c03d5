"""
Consent page configuration.

Values come from the environment, with a ``.env`` file in the working
directory loaded first. Several deployments of the consent page used
different variable names for the same setting, so each setting accepts a
short list of aliases and the first one that is set wins.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence
from urllib.parse import urlparse

from dotenv import load_dotenv

from ..shared.security import TokenGenerator, basic_auth_credential
from .errors import ConfigurationError


ENV_ALIASES = {
    "tenant_id": ("TENANT_ID", "ACP_TENANT_ID"),
    "issuer_url": ("AUTHORIZATION_SERVER_URL", "ISSUER_URL", "ACP_ISSUER_URL"),
    "client_id": ("CLIENT_ID", "ACP_CLIENT_ID"),
    "client_secret": ("CLIENT_SECRET", "ACP_CLIENT_SECRET"),
}

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ConsentAppConfig:
    """Settings needed to talk to the ACP tenant and to serve the consent page."""

    tenant_id: str
    issuer_url: str
    client_id: str
    client_secret: str = field(repr=False)
    verify_tls: bool = True
    http_timeout: float = 10.0
    session_ttl: int = 600
    session_secret: str = field(default_factory=TokenGenerator.generate_session_secret, repr=False)
    show_error_details: bool = False
    session_https_only: bool = False
    decision_content_type: str = JSON_CONTENT_TYPE
    host: str = "0.0.0.0"
    port: int = 3000

    def __post_init__(self):
        missing = [
            name for name in ENV_ALIASES
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ConfigurationError(f"missing required configuration: {', '.join(missing)}")

        parsed = urlparse(self.issuer_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"issuer url is not a valid http(s) URL: {self.issuer_url!r}")

        if self.http_timeout <= 0:
            raise ConfigurationError("http timeout must be positive")
        if self.session_ttl <= 0:
            raise ConfigurationError("consent session ttl must be positive")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port out of range: {self.port}")
        if self.decision_content_type not in (JSON_CONTENT_TYPE, FORM_CONTENT_TYPE):
            raise ConfigurationError(
                f"unsupported decision content type: {self.decision_content_type!r}"
            )

    @property
    def issuer_origin(self) -> str:
        """Scheme, host and port of the issuer URL."""
        parsed = urlparse(self.issuer_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def basic_credential(self) -> str:
        """base64(client_id:client_secret) for the token endpoint."""
        return basic_auth_credential(self.client_id, self.client_secret)

    @property
    def token_url(self) -> str:
        return f"{self.issuer_origin}/{self.tenant_id}/system/oauth2/token"

    @property
    def scope_grants_url(self) -> str:
        return f"{self.issuer_origin}/api/system/{self.tenant_id}/scope-grants"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 dotenv_path: Optional[str] = None) -> "ConsentAppConfig":
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ`` after
                loading the ``.env`` file)
            dotenv_path: Explicit ``.env`` file to load

        Raises:
            ConfigurationError: A required value is missing or malformed
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        values = {name: _lookup(environ, aliases) or "" for name, aliases in ENV_ALIASES.items()}

        optional = {}
        for key, env_name in (("verify_tls", "VERIFY_TLS"),
                              ("show_error_details", "SHOW_ERROR_DETAILS"),
                              ("session_https_only", "SESSION_HTTPS_ONLY")):
            value = _lookup(environ, (env_name,))
            if value is not None:
                optional[key] = _parse_bool(env_name, value)
        for key, env_name, kind in (("http_timeout", "HTTP_TIMEOUT", float),
                                    ("session_ttl", "CONSENT_SESSION_TTL", int),
                                    ("port", "PORT", int)):
            value = _lookup(environ, (env_name,))
            if value is not None:
                optional[key] = _parse_number(env_name, value, kind)
        for key, env_name in (("session_secret", "SESSION_SECRET"),
                              ("decision_content_type", "DECISION_CONTENT_TYPE"),
                              ("host", "HOST")):
            value = _lookup(environ, (env_name,))
            if value is not None:
                optional[key] = value

        return cls(**values, **optional)


def _lookup(environ: Mapping[str, str], names: Sequence[str]) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, kind):
    try:
        return kind(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
