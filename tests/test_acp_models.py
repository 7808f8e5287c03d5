"""
Unit tests for ACP API models.

Tests validation of token responses, scope grant requests, decision bodies
and the redirect returned after a decision.
"""

import pytest
from pydantic import ValidationError

from src.shared.acp_models import (
    AcceptScopeGrant,
    ConsentRedirect,
    DecisionKind,
    GrantType,
    RejectScopeGrant,
    ScopeGrantRequest,
    TokenResponse,
)


class TestEnums:

    def test_values(self):
        assert GrantType.CLIENT_CREDENTIALS == "client_credentials"
        assert DecisionKind.ACCEPT == "accept"
        assert DecisionKind.REJECT == "reject"
        assert DecisionKind("accept") is DecisionKind.ACCEPT


class TestTokenResponse:

    def test_minimal(self):
        token = TokenResponse(access_token="T1")

        assert token.access_token == "T1"
        assert token.expires_in is None

    def test_extra_fields_ignored(self):
        token = TokenResponse(access_token="T1", token_type="bearer", expires_in=3600, id_token="x")

        assert token.expires_in == 3600

    @pytest.mark.parametrize("extra", [
        {"expires_in": 299.5},
        {"expires_in": "3600"},
        {"expires_in": None, "token_type": None},
        {"scope": ["manage_scope_grants"]},
    ])
    def test_logged_fields_accept_any_shape(self, extra):
        token = TokenResponse(access_token="T1", **extra)

        assert token.access_token == "T1"

    @pytest.mark.parametrize("data", [{}, {"access_token": ""}])
    def test_access_token_required(self, data):
        with pytest.raises(ValidationError):
            TokenResponse(**data)


class TestScopeGrantRequest:

    def test_redirect_uri_is_first_value(self):
        grant_request = ScopeGrantRequest(
            requested_scopes=["openid"],
            request_query_params={"redirect_uri": ["https://cb", "https://other"]}
        )

        assert grant_request.redirect_uri == "https://cb"

    @pytest.mark.parametrize("params", [
        {},
        None,
        {"redirect_uri": []},
        {"redirect_uri": [""]},
        {"redirect_uri": None},
        {"redirect_uri": [None]},
        {"redirect_uri": "https://cb"},
    ])
    def test_redirect_uri_absent(self, params):
        grant_request = ScopeGrantRequest(requested_scopes=[], request_query_params=params)

        assert grant_request.redirect_uri is None

    def test_unrelated_query_params_pass_through(self):
        grant_request = ScopeGrantRequest(
            requested_scopes=["openid"],
            request_query_params={
                "redirect_uri": ["https://cb"],
                "nonce": None,
                "max_age": 300,
                "claims": {"id_token": {}},
            }
        )

        assert grant_request.redirect_uri == "https://cb"
        assert grant_request.request_query_params["max_age"] == 300

    def test_requested_scopes_keep_order(self):
        grant_request = ScopeGrantRequest(requested_scopes=["profile:read", "payments:read"])

        assert grant_request.requested_scopes == ["profile:read", "payments:read"]

    def test_requested_scopes_required(self):
        with pytest.raises(ValidationError):
            ScopeGrantRequest(request_query_params={"redirect_uri": ["https://cb"]})


class TestDecisionBodies:

    def test_accept_field_order(self):
        body = AcceptScopeGrant(granted_scopes=["read"], id="L1", login_state="S1").dict()

        assert list(body) == ["granted_scopes", "id", "login_state"]

    def test_accept_dedupes_scopes(self):
        body = AcceptScopeGrant(granted_scopes=["read", "write", "read"], id="L1", login_state="S1")

        assert body.granted_scopes == ["read", "write"]

    def test_accept_allows_no_scopes(self):
        assert AcceptScopeGrant(id="L1", login_state="S1").granted_scopes == []

    @pytest.mark.parametrize("model", [AcceptScopeGrant, RejectScopeGrant])
    def test_login_identifiers_required(self, model):
        with pytest.raises(ValidationError):
            model(id="", login_state="S1")

    def test_reject_body(self):
        assert RejectScopeGrant(id="L1", login_state="S1").dict() == {"id": "L1", "login_state": "S1"}


class TestConsentRedirect:

    def test_redirect_to(self):
        assert ConsentRedirect(redirect_to="https://acp/finish").redirect_to == "https://acp/finish"

    @pytest.mark.parametrize("data", [{}, {"redirect_to": ""}])
    def test_redirect_to_required(self, data):
        with pytest.raises(ValidationError):
            ConsentRedirect(**data)
