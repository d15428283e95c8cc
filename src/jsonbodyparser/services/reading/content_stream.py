# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the content stream unit so this responsibility stays isolated, testable, and easy to evolve.

Content-Encoding handling: identity passes bytes through, gzip and deflate are
inflated incrementally with a bounded output size per step.
"""

from __future__ import annotations

import logging
import zlib
from typing import Any, AsyncIterator

from jsonbodyparser.services.exceptions import (
    ContentDecodingError,
    EncodingUnsupportedError,
)

logger = logging.getLogger(__name__)

# Upper bound on bytes produced by a single decompress call
INFLATE_STEP_SIZE = 64 * 1024

_WBITS = {
    "gzip": 16 + zlib.MAX_WBITS,
    "deflate": zlib.MAX_WBITS,
}


def open_decompressor(content_encoding: str, inflate: bool):
    """Return a zlib decompressor for the encoding, or None for identity.

    Raises EncodingUnsupportedError for encodings that are unknown, or for any
    non-identity encoding when inflation is disabled.
    """
    encoding = (content_encoding or "identity").strip().lower()
    if encoding == "identity":
        return None
    if not inflate:
        raise EncodingUnsupportedError("content encoding unsupported")
    if encoding not in _WBITS:
        raise EncodingUnsupportedError(f'unsupported content encoding "{encoding}"')
    logger.debug("content-encoding %s", encoding)
    return zlib.decompressobj(_WBITS[encoding])


async def iter_content(
    chunks: AsyncIterator[bytes], decompressor: Any
) -> AsyncIterator[bytes]:
    """Yield decoded body bytes from raw transport chunks."""
    if decompressor is None:
        async for chunk in chunks:
            if chunk:
                yield chunk
        return

    try:
        async for chunk in chunks:
            data = chunk
            while data:
                piece = decompressor.decompress(data, INFLATE_STEP_SIZE)
                if piece:
                    yield piece
                data = decompressor.unconsumed_tail
        tail = decompressor.flush()
        if tail:
            yield tail
    except zlib.error as exc:
        raise ContentDecodingError(str(exc)) from exc

    if not decompressor.eof:
        raise ContentDecodingError("unexpected end of file")
