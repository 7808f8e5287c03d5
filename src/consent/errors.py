"""
Errors raised while driving the consent flow.

Every ``ConsentFlowError`` is terminal for the request it happens in: the
application logs it once and renders the error page. The user has to restart
from the authorization server's login redirect.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or malformed."""


class ConsentFlowError(Exception):
    """Base class for consent flow failures."""

    kind = "consent_flow_error"
    status_code = 502
    public_message = "Something went wrong while processing your consent. Please sign in again."

    def __init__(self, cause: Optional[str] = None):
        self.cause = cause
        super().__init__(cause or self.public_message)


class MissingLoginParameters(ConsentFlowError):
    kind = "missing_login_parameters"
    status_code = 400
    public_message = "The consent request is missing the login id and/or login state."


class ConsentSessionNotFound(ConsentFlowError):
    kind = "consent_session_not_found"
    status_code = 400
    public_message = "Your consent session has expired or was already completed. Please sign in again."


class TokenExchangeFailed(ConsentFlowError):
    kind = "token_exchange_failed"
    public_message = "Could not authenticate with the authorization server."


class ScopeGrantFetchFailed(ConsentFlowError):
    kind = "scope_grant_fetch_failed"
    public_message = "Could not load the permissions requested by the application."


class RedirectURIMissing(ScopeGrantFetchFailed):
    kind = "redirect_uri_missing"
    public_message = "The authorization request has no redirect URI."


class DecisionSubmissionFailed(ConsentFlowError):
    kind = "decision_submission_failed"
    public_message = "Could not submit your consent decision."
