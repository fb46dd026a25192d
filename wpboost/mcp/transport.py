"""stdio transport for MCP.

Newline-delimited JSON-RPC 2.0: one message per line on stdin, one
response per line on stdout.  Nothing else may be written to stdout;
diagnostics go to stderr through ``logging``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, BinaryIO, TextIO

logger = logging.getLogger(__name__)

# Error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 helpers
# ---------------------------------------------------------------------------


def jsonrpc_response(id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "result": result, "id": id}


def jsonrpc_error(id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": id}


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class StdioTransport:
    """Line-oriented JSON-RPC channel.

    stdin is read as bytes (``sys.stdin.buffer`` by default) and decoded
    per line, so one undecodable line costs only that line.  Text streams
    are accepted too.
    """

    def __init__(
        self,
        stdin: BinaryIO | TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin.buffer
        self._stdout = stdout if stdout is not None else sys.stdout
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    async def read(self) -> dict[str, Any] | None:
        """Read one message.

        Returns ``None`` for EOF (and marks the transport closed), blank
        lines, and lines that were already answered with a protocol error.
        """
        try:
            raw = await asyncio.to_thread(self._stdin.readline)
        except UnicodeDecodeError as exc:
            # Text streams decode inside readline()
            self._parse_error(f"invalid UTF-8 at byte {exc.start}")
            return None

        if not raw:
            self._open = False
            return None

        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                self._parse_error(f"invalid UTF-8 at byte {exc.start}")
                return None

        line = raw.strip()
        if not line:
            return None

        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            self._parse_error(exc.msg)
            return None
        except RecursionError:
            self._parse_error("nesting too deep")
            return None
        except ValueError as exc:
            self._parse_error(str(exc))
            return None

        if not isinstance(message, dict):
            self.write_error(INVALID_REQUEST, "Invalid Request: expected a JSON object")
            return None

        return message

    def _parse_error(self, detail: str) -> None:
        logger.warning("Unparseable message: %s", detail)
        self.write_error(PARSE_ERROR, f"Parse error: {detail}")

    def write(self, message: dict[str, Any]) -> None:
        try:
            data = json.dumps(message, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to encode message: %s", exc)
            data = json.dumps(
                jsonrpc_error(message.get("id"), INTERNAL_ERROR, "Failed to encode response"),
                ensure_ascii=False,
            )
        self._stdout.write(data + "\n")
        self._stdout.flush()

    def write_result(self, result: Any, id: Any) -> None:
        self.write(jsonrpc_response(id, result))

    def write_error(self, code: int, message: str, id: Any = None) -> None:
        self.write(jsonrpc_error(id, code, message))
