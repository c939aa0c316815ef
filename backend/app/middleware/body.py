"""
HeartSmiles Backend — Body Decoding Middleware
================================================

What:  Buffers, size-checks and decodes JSON and form-encoded bodies.
Why:   Collaborators receive an already-decoded body through the handler
       contract, and oversized or malformed payloads are rejected before
       any resource code runs.
How:   For `application/json` and `application/x-www-form-urlencoded`:
       1. Reject early on a Content-Length above the limit (413)
       2. Read the stream, aborting as soon as the limit is crossed (413)
       3. Decode; undecodable bodies raise MalformedBodyError (400)
       4. Store the decoded value in scope["state"]["body"]
       5. Replay the buffered bytes to the downstream app
       Other content types (multipart uploads, binary) pass through untouched.
"""

import json
import logging
from typing import Any, List, Optional
from urllib.parse import parse_qs

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import MalformedBodyError, PayloadTooLargeError

logger = logging.getLogger(__name__)

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"


def _media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def decode_body(content_type: Optional[str], raw: bytes) -> Any:
    """
    Decode a buffered body according to its media type.

    Empty bodies decode to None. Form fields with a single value are
    flattened to a string, repeated fields stay lists.
    """
    media_type = _media_type(content_type)
    if not raw:
        return None
    if media_type == JSON_TYPE or media_type.endswith("+json"):
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedBodyError(
                "Request body is not valid JSON", context={"error": str(exc)}
            ) from exc
    if media_type == FORM_TYPE:
        try:
            fields = parse_qs(raw.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError as exc:
            raise MalformedBodyError(
                "Form body is not valid UTF-8", context={"error": str(exc)}
            ) from exc
        return {key: values[0] if len(values) == 1 else values for key, values in fields.items()}
    return None


class BodyDecodingMiddleware:
    """Size cap plus decoding for JSON and form-encoded request bodies."""

    def __init__(self, app: ASGIApp, limit_bytes: int) -> None:
        self.app = app
        self.limit_bytes = limit_bytes

    def _handles(self, content_type: Optional[str]) -> bool:
        media_type = _media_type(content_type)
        return media_type in (JSON_TYPE, FORM_TYPE) or media_type.endswith("+json")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        content_type = headers.get("content-type")
        if not self._handles(content_type):
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.limit_bytes:
            raise PayloadTooLargeError(self.limit_bytes, context={"content_length": int(declared)})

        body = bytearray()
        tail: List[Message] = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                tail.append(message)
                break
            body.extend(message.get("body", b""))
            if len(body) > self.limit_bytes:
                raise PayloadTooLargeError(self.limit_bytes)
            if not message.get("more_body", False):
                break

        raw = bytes(body)
        state = scope.setdefault("state", {})
        state["body"] = decode_body(content_type, raw)

        replay: List[Message] = [{"type": "http.request", "body": raw, "more_body": False}, *tail]

        async def replay_receive() -> Message:
            if replay:
                return replay.pop(0)
            return await receive()

        await self.app(scope, replay_receive, send)
