# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the stream reader unit so this responsibility stays isolated, testable, and easy to evolve.

Reads a request body off the ASGI receive channel and hands the decoded text
to a parse callback. Enforces the byte limit (declared and received, after
inflation), checks the received length against Content-Length, runs the
verify hook on the raw bytes and classifies every failure on the way.
"""

from __future__ import annotations

import codecs
import logging
from typing import Any, Awaitable, Callable, Optional

from starlette.requests import ClientDisconnect, Request

from jsonbodyparser.services.decoding.error_normalizer import (
    format_trace,
    normalize_parse_error,
)
from jsonbodyparser.services.exceptions import (
    BodyParserError,
    CharsetUnsupportedError,
    EntityTooLargeError,
    EntityVerifyError,
    RequestAbortedError,
    RequestSizeInvalidError,
)
from jsonbodyparser.services.reading.content_stream import (
    iter_content,
    open_decompressor,
)

logger = logging.getLogger(__name__)

ParseFn = Callable[[str], Awaitable[Any]]
VerifyFn = Callable[[Request, bytes, str], Any]


def _declared_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _lookup_codec(encoding: str) -> str:
    try:
        return codecs.lookup(encoding).name
    except LookupError as exc:
        raise CharsetUnsupportedError(encoding) from exc


def _decode_text(raw: bytes, encoding: str) -> str:
    text = raw.decode(encoding, errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


def _verify_error(exc: Exception, raw: bytes, encoding: str) -> EntityVerifyError:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    kind = getattr(exc, "type", None)
    return EntityVerifyError(
        str(exc) or type(exc).__name__,
        status if isinstance(status, int) else None,
        kind=kind if isinstance(kind, str) else None,
        diagnostic_trace=format_trace(exc),
        original_body=_decode_text(raw, encoding),
    )


async def read_raw(
    request: Request,
    *,
    inflate: bool,
    limit: int,
) -> bytes:
    """Collect the (inflated) body bytes, enforcing limit and length checks."""
    decompressor = open_decompressor(
        request.headers.get("content-encoding", "identity"), inflate
    )
    # Compressed bodies are only checked against the limit after inflation
    length = _declared_length(request) if decompressor is None else None

    if length is not None and length > limit:
        logger.debug("declared length %s exceeds limit %s", length, limit)
        raise EntityTooLargeError(limit, length)

    received = 0
    buffer = bytearray()
    try:
        async for chunk in iter_content(request.stream(), decompressor):
            received += len(chunk)
            if received > limit:
                logger.debug("received %s bytes, limit %s", received, limit)
                raise EntityTooLargeError(limit, received)
            buffer.extend(chunk)
    except ClientDisconnect as exc:
        raise RequestAbortedError(diagnostic_trace=format_trace(exc)) from exc

    if length is not None and received != length:
        raise RequestSizeInvalidError(length, received)

    return bytes(buffer)


async def read_body(
    request: Request,
    parse: ParseFn,
    *,
    encoding: str,
    inflate: bool,
    limit: int,
    verify: Optional[VerifyFn] = None,
) -> Any:
    """Read, verify and decode the request body, then return ``parse(text)``.

    Every failure is raised as a ``BodyParserError`` subclass.
    """
    encoding = _lookup_codec(encoding)
    raw = await read_raw(request, inflate=inflate, limit=limit)

    if verify is not None:
        logger.debug("verify body")
        try:
            verify(request, raw, encoding)
        except Exception as exc:
            raise _verify_error(exc, raw, encoding) from exc

    text = _decode_text(raw, encoding)
    try:
        return await parse(text)
    except BodyParserError as exc:
        if exc.original_body is None:
            exc.original_body = text
        raise
    except Exception as exc:
        error = normalize_parse_error(exc)
        error.original_body = text
        raise error from exc
