"""
HTTP client for the remote tool server that hosts signature generation and
image comparison tools.

Requests are ``POST {base_url}/mcp/tool`` with ``{"name", "arguments"}`` and
answer with a JSON object of tool results.
"""

from typing import Any, Dict

import requests

from .errors import CollaboratorError, CollaboratorTimeout
from .retry import call_with_retry


class ToolClient:
    """Calls named tools with a bounded timeout and timeout-only retries."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout_sec: float = 300.0,
                 max_retries: int = 2, backoff_sec: float = 0.5, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.max_retries = max_retries
        self.backoff_sec = backoff_sec
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/mcp/tool"

    def call(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Call tool ``name`` and return its decoded JSON result."""
        return call_with_retry(
            "tool_server",
            name,
            lambda: self._post(name, arguments),
            max_retries=self.max_retries,
            backoff_sec=self.backoff_sec,
        )

    def _post(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.endpoint,
                json={"name": name, "arguments": arguments},
                timeout=self.timeout_sec,
            )
        except requests.exceptions.Timeout as e:
            raise CollaboratorTimeout(f"Tool {name} timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise CollaboratorError(f"Tool {name} request failed: {e}")

        if not response.ok:
            raise CollaboratorError(
                f"Tool server error: {response.status_code} {response.reason}",
                {"status_code": response.status_code},
            )

        try:
            result = response.json()
        except ValueError as e:
            raise CollaboratorError(f"Tool {name} returned invalid JSON: {e}")

        if not isinstance(result, dict):
            raise CollaboratorError(f"Tool {name} returned {type(result).__name__}, expected an object")
        return result
