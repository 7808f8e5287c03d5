"""
Client for the ACP token and scope grant management APIs.

The consent page makes three kinds of calls to ACP:

1. Token exchange: client credentials for a ``manage_scope_grants`` token
   https://developer.cloudentity.com/api/oauth2/#operation/token
2. Scope grant retrieval for a pending login
   https://developer.cloudentity.com/api/authorization_apis/system/#tag/logins/operation/getScopeGrantRequest
3. Accept or reject of that scope grant request
   https://developer.cloudentity.com/api/authorization_apis/system/#tag/logins/operation/acceptScopeGrantRequest

Each failure is raised as the matching ``ConsentFlowError`` subclass with the
underlying cause attached; retrying is left to the user.
"""

import json
from typing import Any, Dict, Iterable, Optional, Type
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..shared.acp_models import (
    AcceptScopeGrant,
    ConsentRedirect,
    DecisionKind,
    GrantType,
    RejectScopeGrant,
    SCOPE_GRANT_MANAGEMENT_SCOPE,
    ScopeGrantRequest,
    TokenResponse,
)
from ..shared.logging_utils import ComponentType, ConsentLogger, MessageType
from .config import ConsentAppConfig, FORM_CONTENT_TYPE
from .errors import (
    ConsentFlowError,
    DecisionSubmissionFailed,
    RedirectURIMissing,
    ScopeGrantFetchFailed,
    TokenExchangeFailed,
)

logger = ConsentLogger("CONSENT-APP")


class ACPClient:
    """
    Async HTTP client for one ACP tenant.

    A fresh ``httpx.AsyncClient`` is opened per call with the configured TLS
    trust policy and timeout. ``transport`` lets tests route calls to an
    ``httpx.MockTransport``.
    """

    def __init__(self, config: ConsentAppConfig,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=self.config.verify_tls,
            timeout=self.config.http_timeout,
            transport=self._transport,
        )

    async def _call(self, error_cls: Type[ConsentFlowError], method: str, url: str,
                    **kwargs) -> Dict[str, Any]:
        """Send one request and return its JSON object body."""
        logger.log_http_request(method, url, params=kwargs.get("params") or kwargs.get("data"),
                               headers=kwargs.get("headers"))

        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise error_cls(f"{method} {url} failed: {exc!r}") from exc

        if not response.is_success:
            raise error_cls(f"{method} {url} returned HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as exc:
            raise error_cls(f"{method} {url} returned a non-JSON body") from exc

        if not isinstance(body, dict):
            raise error_cls(f"{method} {url} returned {type(body).__name__}, expected an object")

        logger.log_flow_message(
            ComponentType.ACP.value, ComponentType.CONSENT_APP.value,
            MessageType.RESPONSE.value,
            {
                "url": url,
                "status_code": response.status_code,
                "fields": sorted(body.keys())
            }
        )

        return body

    async def fetch_service_token(self) -> str:
        """
        Exchange the client credentials for a scope grant management token.

        Returns:
            str: Bearer token

        Raises:
            TokenExchangeFailed: Transport error, non-2xx status, or no access_token
        """
        body = await self._call(
            TokenExchangeFailed,
            "POST",
            self.config.token_url,
            data={
                "grant_type": GrantType.CLIENT_CREDENTIALS.value,
                "scope": SCOPE_GRANT_MANAGEMENT_SCOPE,
            },
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                "Authorization": f"Basic {self.config.basic_credential}",
            },
        )

        try:
            token = TokenResponse(**body)
        except ValidationError as exc:
            raise TokenExchangeFailed(f"token response has no usable access_token: {exc}") from exc

        logger.log_flow_message(
            ComponentType.ACP.value, ComponentType.CONSENT_APP.value,
            MessageType.TOKEN_EXCHANGE.value,
            {
                "access_token": token.access_token,
                "expires_in": token.expires_in,
                "scope": token.scope
            }
        )

        return token.access_token

    async def fetch_scope_grant_request(self, login_id: str, login_state: str,
                                        token: str) -> ScopeGrantRequest:
        """
        Retrieve the pending scope grant request for a login.

        Raises:
            ScopeGrantFetchFailed: Transport error, non-2xx status, or malformed body
            RedirectURIMissing: The request carries no redirect_uri
        """
        body = await self._call(
            ScopeGrantFetchFailed,
            "GET",
            f"{self.config.scope_grants_url}/{quote(login_id, safe='')}",
            params={"login_state": login_state},
            headers={"Authorization": f"Bearer {token}"},
        )

        try:
            grant_request = ScopeGrantRequest(**body)
        except ValidationError as exc:
            raise ScopeGrantFetchFailed(f"malformed scope grant request: {exc}") from exc

        if grant_request.redirect_uri is None:
            raise RedirectURIMissing("request_query_params.redirect_uri is empty")

        logger.log_flow_message(
            ComponentType.ACP.value, ComponentType.CONSENT_APP.value,
            MessageType.SCOPE_GRANT_FETCH.value,
            {
                "login_id": login_id,
                "requested_scopes": grant_request.requested_scopes,
                "redirect_uri": grant_request.redirect_uri
            }
        )

        return grant_request

    async def submit_decision(self, kind: DecisionKind, login_id: str, login_state: str,
                              token: str, granted_scopes: Iterable[str] = ()) -> str:
        """
        Record the user's accept or reject decision.

        Args:
            kind: Accept or reject
            login_id: Login id issued by ACP
            login_state: Login state issued by ACP
            token: Scope grant management token
            granted_scopes: Scopes the user approved (accept only, may be empty)

        Returns:
            str: URI ACP wants the browser redirected to

        Raises:
            DecisionSubmissionFailed: Transport error, non-2xx status, or no redirect_to
        """
        kind = DecisionKind(kind)
        if kind is DecisionKind.ACCEPT:
            payload = AcceptScopeGrant(
                granted_scopes=list(granted_scopes), id=login_id, login_state=login_state
            )
        else:
            payload = RejectScopeGrant(id=login_id, login_state=login_state)

        body = await self._call(
            DecisionSubmissionFailed,
            "POST",
            f"{self.config.scope_grants_url}/{quote(login_id, safe='')}/{kind.value}",
            content=json.dumps(payload.dict()),
            headers={
                "Content-Type": self.config.decision_content_type,
                "Authorization": f"Bearer {token}",
            },
        )

        try:
            redirect = ConsentRedirect(**body)
        except ValidationError as exc:
            raise DecisionSubmissionFailed(f"decision response has no redirect_to: {exc}") from exc

        logger.log_flow_message(
            ComponentType.ACP.value, ComponentType.CONSENT_APP.value,
            MessageType.DECISION.value,
            {
                "decision": kind.value,
                "login_id": login_id,
                "granted_scopes": getattr(payload, "granted_scopes", None),
                "redirect_to": redirect.redirect_to
            }
        )

        return redirect.redirect_to
