"""
ACP Custom Consent Page

This FastAPI application implements a custom consent page for the Cloudentity
ACP authorization server. ACP redirects users here with a login id and login
state; the page shows the scopes the client application requested and sends
the user's accept/reject decision back to ACP.

Key Features:
- Client credentials token exchange against the tenant's system workspace
- Scope grant request retrieval and rendering
- Accept (with the scopes the user kept) and reject submission
- Per-browser consent sessions with expiration
- Colored flow logging with credential redaction
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from ..shared.logging_utils import ConsentLogger
from ..shared.security import SecurityHeaders
from .acp_client import ACPClient
from .config import ConsentAppConfig
from .errors import ConsentFlowError
from .flow import ConsentFlow
from .routes import consent_flow_error_handler, router
from .sessions import ConsentSessionStore

logger = ConsentLogger("CONSENT-APP")


def create_app(config: Optional[ConsentAppConfig] = None,
               acp_client: Optional[ACPClient] = None,
               sessions: Optional[ConsentSessionStore] = None) -> FastAPI:
    """
    Build the consent page application.

    Args:
        config: Settings; read from the environment when omitted
        acp_client: ACP client; built from ``config`` when omitted
        sessions: Consent session store; a fresh in-memory store when omitted

    Raises:
        ConfigurationError: Required settings are missing or malformed
    """
    if config is None:
        config = ConsentAppConfig.from_env()

    if not config.verify_tls:
        logger.log_warning(
            "TLS certificate verification is disabled for calls to ACP",
            {"issuer_origin": config.issuer_origin, "use": "development only"}
        )

    app = FastAPI(
        title="ACP Custom Consent Page",
        description="Custom consent page for Cloudentity ACP scope grants",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )

    app.state.config = config
    app.state.flow = ConsentFlow(
        acp_client or ACPClient(config),
        sessions or ConsentSessionStore(ttl_seconds=config.session_ttl),
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie="consent_session",
        max_age=config.session_ttl,
        same_site="lax",
        https_only=config.session_https_only,
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        """Add security headers to all HTTP responses."""
        response = await call_next(request)

        for header_name, header_value in SecurityHeaders.get_consent_security_headers(
                config.session_https_only).items():
            response.headers[header_name] = header_value

        return response

    app.add_exception_handler(ConsentFlowError, consent_flow_error_handler)
    app.include_router(router)

    logger.log_flow_message(
        "SYSTEM", "CONSENT-APP",
        "Application Configured",
        {
            "tenant_id": config.tenant_id,
            "issuer_origin": config.issuer_origin,
            "client_id": config.client_id,
            "verify_tls": config.verify_tls,
            "http_timeout": config.http_timeout,
            "session_ttl": config.session_ttl,
            "decision_content_type": config.decision_content_type
        }
    )

    return app


def run() -> None:
    """Serve the consent page with uvicorn."""
    config = ConsentAppConfig.from_env()
    app = create_app(config)

    logger.log_startup(config.host, config.port, {
        "consent_url": f"http://{config.host}:{config.port}/consent",
        "tenant_id": config.tenant_id
    })

    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


if __name__ == "__main__":
    run()
