"""
Stdio proxy for the MCP tools.

Reads one JSON-RPC request per line from an input stream, POSTs it to the
HTTP API's /api/mcp endpoint, and writes one JSON response per line to an
output stream. Lines are handled strictly in order.

- Blank lines are ignored.
- A line that is not valid JSON gets a -32700 parse error with a null id.
- A failed HTTP call (connection refused, non-JSON reply) gets a -32603
  error carrying the request id.
- The loop ends, returning exit code 0, when the input stream closes.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

import requests

from .errors import EXIT_SUCCESS
from .tools import INTERNAL_ERROR, error_response, parse_error

logger = logging.getLogger(__name__)

MCP_PATH = "/api/mcp"


class McpProxy:
    """Forwards line-delimited JSON-RPC requests to the HTTP API."""

    def __init__(
        self,
        api_url: str = "http://localhost:3000",
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = api_url.rstrip("/") + MCP_PATH
        self.session = session or requests.Session()
        self.timeout = timeout

    def forward(self, payload: Any) -> Dict[str, Any]:
        """
        POST one request envelope and return the decoded response envelope.

        Raises:
            requests.RequestException: If the call fails or the reply is not JSON.
        """
        response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
        try:
            return response.json()
        except ValueError as e:
            raise requests.RequestException(
                f"Invalid JSON response (HTTP {response.status_code}): {e}"
            )

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Process one input line. Returns None for blank lines."""
        if not line.strip():
            return None

        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Unparseable request line: {e}")
            return parse_error(f"Parse error: {e.msg}")

        request_id = payload.get("id") if isinstance(payload, dict) else None
        try:
            return self.forward(payload)
        except requests.RequestException as e:
            logger.error(f"Request to {self.endpoint} failed: {e}")
            return error_response(request_id, INTERNAL_ERROR, f"Upstream request failed: {e}")

    def serve(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
        """
        Run until the input stream closes.

        Returns:
            Exit code (always EXIT_SUCCESS).
        """
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        logger.info(f"MCP proxy forwarding to {self.endpoint}")

        for line in stdin:
            response = self.handle_line(line)
            if response is None:
                continue
            stdout.write(json.dumps(response) + "\n")
            stdout.flush()

        logger.info("Input closed, MCP proxy exiting")
        return EXIT_SUCCESS
