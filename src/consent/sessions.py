"""
In-memory storage for in-flight consent sessions.

Each browser that lands on ``/consent`` gets its own record, keyed by a random
session id kept in the browser's signed session cookie. The record holds the
login id and login state handed over by ACP plus the service token needed to
submit the decision later, so concurrent users never share flow state.

Records live only as long as the process and expire after a configurable
TTL. A multi-instance deployment would need a shared store (Redis or similar)
behind the same interface.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..shared.logging_utils import ConsentLogger
from ..shared.security import TokenGenerator

logger = ConsentLogger("CONSENT-STORE")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConsentSession:
    """State carried between ``/consent`` and the accept/reject decision."""

    session_id: str
    login_id: str
    login_state: str
    created_at: datetime
    expires_at: datetime
    access_token: Optional[str] = field(default=None, repr=False)
    requested_scopes: Optional[List[str]] = None
    redirect_uri: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class ConsentSessionStore:
    """
    In-memory consent session storage with expiration.

    Sessions are created with both login identifiers at once, looked up by
    session id, and discarded when the flow finishes. Expired sessions are
    removed on lookup and on every ``create`` call.
    """

    def __init__(self, ttl_seconds: int = 600, clock: Callable[[], datetime] = _utcnow):
        """
        Args:
            ttl_seconds: Lifetime of a consent session
            clock: Returns the current time; replaceable in tests
        """
        self._sessions: Dict[str, ConsentSession] = {}
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

        logger.log_flow_message(
            "SYSTEM", "CONSENT-STORE",
            "Consent Session Store Initialized",
            {"ttl_seconds": ttl_seconds}
        )

    def create(self, login_id: str, login_state: str) -> ConsentSession:
        """
        Start a new consent session for a login.

        Args:
            login_id: Login id issued by ACP
            login_state: Login state issued by ACP

        Returns:
            ConsentSession: The stored session
        """
        self.cleanup_expired()

        now = self._clock()
        session = ConsentSession(
            session_id=TokenGenerator.generate_session_id(),
            login_id=login_id,
            login_state=login_state,
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._sessions[session.session_id] = session

        logger.log_flow_message(
            "CONSENT-STORE", "CONSENT-APP",
            "Consent Session Created",
            {
                "session_id": session.session_id[:8] + "...",
                "login_id": login_id,
                "expires_at": session.expires_at.isoformat()
            }
        )

        return session

    def get(self, session_id: Optional[str]) -> Optional[ConsentSession]:
        """
        Look up a live session.

        Returns:
            Optional[ConsentSession]: The session, or None if unknown or expired
        """
        if not session_id:
            return None

        session = self._sessions.get(session_id)
        if session is None:
            return None

        if session.is_expired(self._clock()):
            del self._sessions[session_id]
            logger.log_flow_message(
                "CONSENT-STORE", "CONSENT-APP",
                "Consent Session Expired",
                {
                    "session_id": session_id[:8] + "...",
                    "login_id": session.login_id,
                    "expired_at": session.expires_at.isoformat()
                }
            )
            return None

        return session

    def discard(self, session_id: Optional[str]) -> None:
        """Forget a session once its flow has finished."""
        if session_id:
            self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """
        Remove expired sessions.

        Returns:
            int: Number of sessions removed
        """
        now = self._clock()
        expired = [sid for sid, session in self._sessions.items() if session.is_expired(now)]

        for sid in expired:
            del self._sessions[sid]

        if expired:
            logger.log_flow_message(
                "CONSENT-STORE", "CONSENT-STORE",
                "Expired Sessions Cleanup",
                {
                    "sessions_removed": len(expired),
                    "remaining_sessions": len(self._sessions)
                }
            )

        return len(expired)

    def active_count(self) -> int:
        """Number of stored sessions that have not expired."""
        now = self._clock()
        return sum(1 for session in self._sessions.values() if not session.is_expired(now))
