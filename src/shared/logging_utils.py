"""
Colored logging utilities for the ACP consent page.

This module provides colored console logging with component identification,
timestamps, and message formatting so the consent flow between the browser,
this application and the ACP authorization server can be followed step by step.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)


class ComponentType(str, Enum):
    """Consent flow component types."""
    CONSENT_APP = "CONSENT-APP"
    ACP = "ACP"
    BROWSER = "BROWSER"
    SYSTEM = "SYSTEM"


class MessageType(str, Enum):
    """Consent flow message types for logging."""
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"
    TOKEN_EXCHANGE = "TOKEN-EXCHANGE"
    SCOPE_GRANT_FETCH = "SCOPE-GRANT-FETCH"
    DECISION = "DECISION"
    REDIRECT = "REDIRECT"


class ConsentLogger:
    """
    Colored logger for consent flow messages.

    Provides logging with color coding, timestamps, and structured
    message formatting to help follow the consent flow and debug issues.
    Output goes through the standard ``logging`` module so it can be
    silenced or redirected like any other logger.
    """

    def __init__(self, component_name: str):
        """
        Initialize consent logger for a specific component.

        Args:
            component_name: Name of the component (CONSENT-APP, ACP, etc.)
        """
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        self.logger = logging.getLogger(f"consent.{component_name.lower()}")
        self.logger.setLevel(logging.INFO)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_component_colors(self) -> Dict[str, str]:
        """Get color scheme for different components and message types."""
        return {
            'CONSENT-APP': Fore.BLUE + Style.BRIGHT,
            'ACP': Fore.GREEN + Style.BRIGHT,
            'BROWSER': Fore.YELLOW + Style.BRIGHT,
            'SYSTEM': Fore.MAGENTA + Style.BRIGHT,
            'ERROR': Fore.RED + Style.BRIGHT,
            'WARNING': Fore.YELLOW,
            'SUCCESS': Fore.GREEN + Style.BRIGHT,
            'INFO': Fore.CYAN,
            'HEADER': Fore.WHITE + Style.BRIGHT,
            'SEPARATOR': Fore.WHITE + Style.DIM,
            'RESET': Style.RESET_ALL
        }

    def _format_timestamp(self) -> str:
        """Format current timestamp for log messages."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize sensitive data for logging.

        Redacts secrets and credentials, and truncates long tokens.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if key_lower == 'authorization' or any(
                    sensitive in key_lower for sensitive in ['password', 'secret', 'credential']):
                sanitized[key] = '[REDACTED]'
            elif 'token' in key_lower:
                # Show first 10 characters of tokens for debugging
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            elif key_lower == 'headers' and isinstance(value, dict):
                sanitized[key] = self._sanitize_headers(value)
            else:
                sanitized[key] = value

        return sanitized

    def _sanitize_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Redact credential-bearing HTTP headers."""
        return {
            name: '[REDACTED]' if name.lower() in ['authorization', 'cookie'] else value
            for name, value in headers.items()
        }

    def log_flow_message(self,
                         source: str,
                         destination: str,
                         message_type: str,
                         data: Dict[str, Any],
                         success: bool = True):
        """
        Log a consent flow message with color coding and formatting.

        Args:
            source: Source component name
            destination: Destination component name
            message_type: Type of message (REQUEST, RESPONSE, etc.)
            data: Message data dictionary
            success: Whether the operation was successful
        """
        timestamp = self._format_timestamp()
        source_color = self.colors.get(source.upper(), self.colors['INFO'])
        dest_color = self.colors.get(destination.upper(), self.colors['INFO'])

        # Choose message color based on type and success
        if not success:
            msg_color = self.colors['ERROR']
        elif message_type in ['RESPONSE', 'SUCCESS']:
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        lines = [
            f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{self.colors['RESET']} → {dest_color}{destination}{self.colors['RESET']}",
            f"{msg_color}{message_type}:{self.colors['RESET']}",
        ]

        for key, value in self._sanitize_data(data).items():
            lines.append(f"  {self.colors['INFO']}{key}:{self.colors['RESET']} {value}")

        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")

        level = logging.INFO if success else logging.ERROR
        self.logger.log(level, "\n".join(lines) + "\n")

    def log_http_request(self,
                         method: str,
                         url: str,
                         params: Optional[Dict[str, Any]] = None,
                         headers: Optional[Dict[str, str]] = None):
        """
        Log an outbound HTTP request to the authorization server.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters or form data
            headers: Request headers (credential headers are redacted)
        """
        request_data: Dict[str, Any] = {
            "method": method,
            "url": url
        }

        if params:
            request_data["parameters"] = params

        if headers:
            request_data["headers"] = headers

        self.log_flow_message(
            source=self.component_name,
            destination=ComponentType.ACP.value,
            message_type=MessageType.REQUEST.value,
            data=request_data
        )

    def log_error(self,
                  error_type: str,
                  message: str,
                  details: Optional[Dict[str, Any]] = None):
        """
        Log error messages with context.

        Args:
            error_type: Type of error
            message: Error message
            details: Additional error context
        """
        error_data = {
            "error_type": error_type,
            "message": message
        }

        if details:
            error_data.update(details)

        self.log_flow_message(
            source=self.component_name,
            destination="ERROR-HANDLER",
            message_type=MessageType.ERROR.value,
            data=error_data,
            success=False
        )

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Log a warning that does not stop the flow."""
        lines = [f"{self.colors['WARNING']}[{self._format_timestamp()}] {self.component_name}: {message}{self.colors['RESET']}"]
        if details:
            for key, value in self._sanitize_data(details).items():
                lines.append(f"  {key}: {value}")
        self.logger.warning("\n".join(lines) + "\n")

    def log_startup(self, host: str, port: int, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log component startup information.

        Args:
            host: Interface the component is bound to
            port: Port number the component is running on
            additional_info: Additional startup information
        """
        lines = [f"{self.colors['SUCCESS']}{self.component_name} started on {host}:{port}{self.colors['RESET']}"]
        if additional_info:
            for key, value in self._sanitize_data(additional_info).items():
                lines.append(f"   {key}: {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        self.logger.info("\n".join(lines) + "\n")
