"""
Tests for starting the consent page.

Covers ``python -m src.consent`` and ``run()``; uvicorn itself is patched out
so nothing binds a port.
"""

import runpy
from unittest.mock import patch

import pytest
from fastapi import FastAPI

from src.consent.errors import ConfigurationError
from src.consent.main import run


@pytest.fixture
def tenant_env(monkeypatch):
    """Environment for a test tenant."""
    values = {
        "TENANT_ID": "default",
        "AUTHORIZATION_SERVER_URL": "https://acp.example.com:8443/default/system",
        "CLIENT_ID": "consent-client",
        "CLIENT_SECRET": "consent-secret",
        "HOST": "127.0.0.1",
        "PORT": "3100",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values


class TestEntryPoint:

    def test_module_entry_point_serves_app(self, tenant_env):
        with patch("uvicorn.run") as mock_run:
            runpy.run_module("src.consent", run_name="__main__")

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert isinstance(args[0], FastAPI)
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 3100

    def test_run_refuses_to_start_without_credentials(self, tenant_env, monkeypatch):
        monkeypatch.delenv("CLIENT_SECRET")
        monkeypatch.delenv("ACP_CLIENT_SECRET", raising=False)

        with patch("uvicorn.run") as mock_run:
            with pytest.raises(ConfigurationError):
                run()

        mock_run.assert_not_called()
