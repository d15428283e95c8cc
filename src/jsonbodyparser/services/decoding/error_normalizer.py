# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Collapse decode-time failures into a classified parse error.

Only the first line of the raw error's message and a formatted traceback
survive. Positions, offsets and any other attributes the underlying parser
attached are dropped, because a fresh ``EntityParseError`` is built instead
of mutating the original.
"""

from __future__ import annotations

import traceback

from jsonbodyparser.services.exceptions import BodyParserError, EntityParseError


def format_trace(error: BaseException) -> str:
    return "".join(traceback.format_exception(error))


def normalize_parse_error(error: BaseException) -> BodyParserError:
    """Return a classified error for a failure raised while decoding."""
    if isinstance(error, BodyParserError):
        return error
    # Multi-line parser messages quote the body; only the first line is sent
    lines = str(error).strip().splitlines()
    message = lines[0] if lines else type(error).__name__
    return EntityParseError(message, diagnostic_trace=format_trace(error))
