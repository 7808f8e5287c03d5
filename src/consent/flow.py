"""
Consent flow orchestration.

ACP redirects the user here with a login id and login state when the user
still has to approve scopes for a client application:

https://developer.cloudentity.com/howtos/auth_settings/enabling_custom_consent_pages/

``begin_consent`` obtains a service token and loads the scope grant request
so the requested scopes can be shown. ``submit_decision`` later sends the
user's accept or reject back to ACP and returns where to redirect the browser.
"""

from typing import Iterable, List, Optional

from ..shared.acp_models import DecisionKind
from ..shared.logging_utils import ConsentLogger
from .acp_client import ACPClient
from .errors import ConsentFlowError, ConsentSessionNotFound, MissingLoginParameters
from .sessions import ConsentSession, ConsentSessionStore

logger = ConsentLogger("CONSENT-APP")


def granted_scopes_from_form(field_names: Iterable[str]) -> List[str]:
    """
    Turn submitted consent form field names into granted scopes.

    Every field present in the form is a scope the user kept checked; the
    field value is ignored. Duplicates keep their first position.
    """
    return list(dict.fromkeys(field_names))


class ConsentFlow:
    """Drives token exchange, scope grant retrieval and decision submission."""

    def __init__(self, acp: ACPClient, sessions: ConsentSessionStore):
        self.acp = acp
        self.sessions = sessions

    async def begin_consent(self, login_id: Optional[str],
                            login_state: Optional[str]) -> ConsentSession:
        """
        Start a consent session and load the scopes to display.

        Raises:
            MissingLoginParameters: login_id or login_state is absent or blank
            TokenExchangeFailed: The service token could not be obtained
            ScopeGrantFetchFailed: The scope grant request could not be loaded
        """
        if not (login_id or "").strip() or not (login_state or "").strip():
            raise MissingLoginParameters("missing state and/or login id")

        session = self.sessions.create(login_id, login_state)

        logger.log_flow_message(
            "BROWSER", "CONSENT-APP",
            "Consent Flow Started",
            {
                "login_id": login_id,
                "login_state": login_state,
                "next_step": "token_exchange"
            }
        )

        try:
            session.access_token = await self.acp.fetch_service_token()
            grant_request = await self.acp.fetch_scope_grant_request(
                session.login_id, session.login_state, session.access_token
            )
        except ConsentFlowError:
            self.sessions.discard(session.session_id)
            raise

        session.requested_scopes = list(grant_request.requested_scopes)
        session.redirect_uri = grant_request.redirect_uri

        return session

    async def submit_decision(self, session_id: Optional[str], kind: DecisionKind,
                              granted_scopes: Iterable[str] = ()) -> str:
        """
        Send the user's decision for a consent session to ACP.

        The session is discarded whether or not the call succeeds.

        Returns:
            str: URI ACP wants the browser redirected to

        Raises:
            ConsentSessionNotFound: No live session for ``session_id``
            DecisionSubmissionFailed: ACP did not accept the decision
        """
        session = self.sessions.get(session_id)
        if session is None or session.access_token is None:
            raise ConsentSessionNotFound("no active consent session for this browser")

        scopes = granted_scopes_from_form(granted_scopes) if kind == DecisionKind.ACCEPT else []

        logger.log_flow_message(
            "BROWSER", "CONSENT-APP",
            "Consent Decision Received",
            {
                "decision": DecisionKind(kind).value,
                "login_id": session.login_id,
                "granted_scopes": scopes
            }
        )

        try:
            return await self.acp.submit_decision(
                kind, session.login_id, session.login_state, session.access_token, scopes
            )
        finally:
            self.sessions.discard(session.session_id)
