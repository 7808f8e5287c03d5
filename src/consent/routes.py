"""
Consent Page Routes

Browser-facing endpoints of the consent page. ACP sends the user to
``/consent``; the rendered page posts the kept scopes to ``/accept`` or
links to ``/reject``. Both end in a redirect to the URI ACP returns.
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..shared.acp_models import DecisionKind
from ..shared.logging_utils import ComponentType, ConsentLogger, MessageType
from .errors import ConsentFlowError
from .flow import ConsentFlow

SESSION_KEY = "consent_session_id"

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
logger = ConsentLogger("CONSENT-APP")


def _flow(request: Request) -> ConsentFlow:
    return request.app.state.flow


@router.get("/", response_class=HTMLResponse)
@router.get("/health", response_class=HTMLResponse)
async def health(request: Request):
    """Liveness page."""
    return templates.TemplateResponse(request, "health.html", {"status": "healthy"})


@router.get("/consent", response_class=HTMLResponse)
async def consent(request: Request, login_id: Optional[str] = None,
                  login_state: Optional[str] = None):
    """
    Entry point ACP redirects to when the user has scopes left to approve.

    Validates the login id and login state, then loads the scope grant
    request and renders the requested scopes as a checkbox form.
    """
    session = await _flow(request).begin_consent(login_id, login_state)
    request.session[SESSION_KEY] = session.session_id

    return templates.TemplateResponse(request, "consent.html", {
        "scopes": session.requested_scopes,
        "redirect_uri": session.redirect_uri,
    })


@router.post("/accept")
async def accept(request: Request):
    """
    The user accepted the scope grant request.

    Each field name in the submitted form is a scope the user kept checked.
    https://developer.cloudentity.com/api/authorization_apis/system/#tag/logins/operation/acceptScopeGrantRequest
    """
    form = await request.form()
    field_names = [name for name, _ in form.multi_items()]

    redirect_to = await _flow(request).submit_decision(
        request.session.pop(SESSION_KEY, None), DecisionKind.ACCEPT, field_names
    )
    return _redirect(redirect_to)


@router.get("/reject")
async def reject(request: Request):
    """
    The user rejected the scope grant request.

    https://developer.cloudentity.com/api/authorization_apis/system/#tag/logins/operation/rejectScopeGrantRequest
    """
    redirect_to = await _flow(request).submit_decision(
        request.session.pop(SESSION_KEY, None), DecisionKind.REJECT
    )
    return _redirect(redirect_to)


def _redirect(redirect_to: str) -> RedirectResponse:
    logger.log_flow_message(
        ComponentType.CONSENT_APP.value, ComponentType.BROWSER.value,
        MessageType.REDIRECT.value,
        {"redirect_to": redirect_to}
    )
    return RedirectResponse(redirect_to, status_code=302)


async def consent_flow_error_handler(request: Request, exc: ConsentFlowError):
    """Log a failed consent step once and render the error page."""
    logger.log_error(
        exc.kind,
        exc.public_message,
        {
            "cause": exc.cause,
            "path": request.url.path,
            "method": request.method
        }
    )

    show_details = request.app.state.config.show_error_details
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "error": exc.kind,
            "msg": exc.public_message,
            "details": exc.cause if show_details else None,
        },
        status_code=exc.status_code,
    )
