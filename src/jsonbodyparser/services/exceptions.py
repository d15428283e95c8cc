# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Classified error hierarchy for the body parsing pipeline.

Purpose: Every failure the pipeline can produce is expressed as a subclass of
``BodyParserError``. Each subclass fixes a stable ``kind`` string and an
HTTP-equivalent status code, so the middleware (or a global exception
handler) can translate it into a response without inspecting the cause.

Only ``detail`` is meant for clients. ``diagnostic_trace`` and
``original_body`` are kept for operator-facing logs and diagnostic
middleware.
"""

from __future__ import annotations


class BodyParserError(Exception):
    """Base classified error carrying a kind and an HTTP-equivalent status code."""

    default_status_code: int = 500
    default_kind: str = "other"

    def __init__(
        self,
        detail: str,
        status_code: int | None = None,
        *,
        kind: str | None = None,
        diagnostic_trace: str = "",
        original_body: str | None = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.status_code = (
            status_code if status_code is not None else self.default_status_code
        )
        self.kind = kind if kind is not None else self.default_kind
        self.diagnostic_trace = diagnostic_trace
        self.original_body = original_body

    @property
    def message(self) -> str:
        return self.detail

    def to_payload(self) -> dict[str, object]:
        """Client-visible fields only."""
        return {"detail": self.detail, "type": self.kind}


class CharsetUnsupportedError(BodyParserError):
    """Raised when the declared charset is not a UTF family member (HTTP 415)."""

    default_status_code = 415
    default_kind = "charset.unsupported"

    def __init__(self, charset: str, **kwargs):
        super().__init__(f'unsupported charset "{charset.upper()}"', **kwargs)
        self.charset = charset


class EncodingUnsupportedError(BodyParserError):
    """Raised for a content-encoding that cannot or may not be inflated (HTTP 415)."""

    default_status_code = 415
    default_kind = "encoding.unsupported"


class EntityTooLargeError(BodyParserError):
    """Raised when the declared or received body exceeds the limit (HTTP 413)."""

    default_status_code = 413
    default_kind = "entity.too.large"

    def __init__(self, limit: int, length: int | None = None, **kwargs):
        super().__init__("request entity too large", **kwargs)
        self.limit = limit
        self.length = length


class EntityParseError(BodyParserError):
    """Raised when the body is not acceptable JSON (HTTP 400)."""

    default_status_code = 400
    default_kind = "entity.parse.failed"


class EntityVerifyError(BodyParserError):
    """Raised when the verify hook rejects the raw body (HTTP 403 by default)."""

    default_status_code = 403
    default_kind = "entity.verify.failed"


class RequestAbortedError(BodyParserError):
    """Raised when the client disconnects before the body is complete."""

    default_status_code = 400
    default_kind = "request.aborted"

    def __init__(self, **kwargs):
        super().__init__("request aborted", **kwargs)


class RequestSizeInvalidError(BodyParserError):
    """Raised when the received length differs from Content-Length (HTTP 400)."""

    default_status_code = 400
    default_kind = "request.size.invalid"

    def __init__(self, expected: int, received: int, **kwargs):
        super().__init__("request size did not match content length", **kwargs)
        self.expected = expected
        self.received = received


class ContentDecodingError(BodyParserError):
    """Raised when a gzip/deflate body is malformed or truncated (HTTP 400)."""

    default_status_code = 400
