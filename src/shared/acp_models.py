"""
Pydantic models for the ACP authorization server APIs.

This module defines the payloads exchanged with ACP during the consent flow:
the client credentials token response, the scope grant request returned for
a pending login, the accept/reject decision bodies, and the redirect that ACP
hands back once a decision is recorded.
"""

from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Optional
from enum import Enum


SCOPE_GRANT_MANAGEMENT_SCOPE = "manage_scope_grants"


class GrantType(str, Enum):
    """OAuth grant types used against ACP."""
    CLIENT_CREDENTIALS = "client_credentials"


class DecisionKind(str, Enum):
    """User decisions on a scope grant request."""
    ACCEPT = "accept"
    REJECT = "reject"


class TokenResponse(BaseModel):
    """
    ACP token endpoint response.

    Only ``access_token`` is validated. The other fields are only logged, so
    whatever ACP sends for them is accepted as is.
    """
    access_token: str = Field(..., min_length=1, description="Bearer token for ACP system APIs")
    token_type: Optional[Any] = Field(default=None, description="Token type (bearer)")
    expires_in: Optional[Any] = Field(default=None, description="Token lifetime in seconds")
    scope: Optional[Any] = Field(default=None, description="Granted scope")


class ScopeGrantRequest(BaseModel):
    """
    Pending scope grant request for a login.

    ACP returns the scopes the client application asked for together with
    the query parameters of the original authorization request.
    """
    requested_scopes: List[str] = Field(..., description="Scope names requested by the client")
    request_query_params: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        description="Query parameters of the original authorization request"
    )

    @property
    def redirect_uri(self) -> Optional[str]:
        """
        First ``redirect_uri`` of the original request, if any.

        Only ``redirect_uri`` is inspected; the other query parameters are
        passed through untouched. Anything but a list whose first element is
        a non-empty string counts as missing.
        """
        values = (self.request_query_params or {}).get("redirect_uri")
        if not isinstance(values, list) or not values:
            return None
        first = values[0]
        if not isinstance(first, str) or not first:
            return None
        return first


class AcceptScopeGrant(BaseModel):
    """
    Body of the accept scope grant request call.

    ``granted_scopes`` may be empty when the user unchecked every scope.
    """
    granted_scopes: List[str] = Field(default_factory=list, description="Scopes the user approved")
    id: str = Field(..., min_length=1, description="Login id")
    login_state: str = Field(..., min_length=1, description="Login state")

    @validator('granted_scopes')
    def dedupe_granted_scopes(cls, v):
        """Keep the first occurrence of each scope, preserving order."""
        return list(dict.fromkeys(v))


class RejectScopeGrant(BaseModel):
    """Body of the reject scope grant request call."""
    id: str = Field(..., min_length=1, description="Login id")
    login_state: str = Field(..., min_length=1, description="Login state")


class ConsentRedirect(BaseModel):
    """ACP response to an accept or reject call."""
    redirect_to: str = Field(..., min_length=1, description="Where to send the browser next")
