"""
Security utilities for the ACP consent page.

This module provides session key generation, the HTTP Basic client
credential used for the token exchange, and the standard security headers
applied to every response.
"""

import base64
import secrets


class TokenGenerator:
    """
    Secure token generation utilities.
    """

    @staticmethod
    def generate_session_id() -> str:
        """
        Generate a secure consent session identifier.

        Returns:
            str: URL-safe session ID
        """
        return secrets.token_urlsafe(24)

    @staticmethod
    def generate_session_secret() -> str:
        """
        Generate a signing secret for the session cookie.

        Returns:
            str: URL-safe secret
        """
        return secrets.token_urlsafe(32)


def basic_auth_credential(client_id: str, client_secret: str) -> str:
    """
    Build the HTTP Basic credential for client authentication.

    Args:
        client_id: OAuth client identifier
        client_secret: OAuth client secret

    Returns:
        str: base64("client_id:client_secret")
    """
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


class SecurityHeaders:
    """
    Security headers for HTTP responses.

    Provides standard security headers to protect against
    common web vulnerabilities.
    """

    @staticmethod
    def get_consent_security_headers(https_only: bool = False) -> dict:
        """
        Get security headers for consent pages.

        Args:
            https_only: Page is served over TLS; adds Strict-Transport-Security

        Returns:
            dict: Dictionary of security headers
        """
        headers = {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'X-XSS-Protection': '1; mode=block',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }
        if https_only:
            headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return headers
