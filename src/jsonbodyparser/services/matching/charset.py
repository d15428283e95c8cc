# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the charset unit so this responsibility stays isolated, testable, and easy to evolve.

Content-Type parsing (RFC 7231 media type with parameters) and the charset
policy: only the UTF family is accepted for JSON bodies (RFC 7159 sec 8.1).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from jsonbodyparser.services.exceptions import CharsetUnsupportedError

DEFAULT_CHARSET = "utf-8"

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_TYPE_PATTERN = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAM_PATTERN = re.compile(
    rf";[ \t]*({_TOKEN})[ \t]*=[ \t]*"
    r'("(?:[\u000b\u0020\u0021\u0023-\u005b\u005d-\u007e\u0080-\u00ff]|\\[\u000b\u0020-\u00ff])*"'
    rf"|{_TOKEN})[ \t]*"
)
_QUOTED_PAIR = re.compile(r"\\([\u000b\u0020-\u00ff])")


@dataclass(frozen=True)
class ContentType:
    type: str
    parameters: dict[str, str] = field(default_factory=dict)


def parse_content_type(header: str) -> ContentType:
    """Parse a Content-Type header value.

    Raises ValueError when the header is not a well-formed media type.
    """
    if not isinstance(header, str) or not header:
        raise ValueError("content-type header is missing")

    index = header.find(";")
    media_type = (header[:index] if index != -1 else header).strip()
    if not _TYPE_PATTERN.match(media_type):
        raise ValueError(f"invalid media type: {media_type!r}")

    parameters: dict[str, str] = {}
    if index != -1:
        pos = index
        while pos < len(header):
            match = _PARAM_PATTERN.match(header, pos)
            if not match or match.start() != pos:
                raise ValueError("invalid parameter format")
            pos = match.end()
            key = match.group(1).lower()
            value = match.group(2)
            if value.startswith('"'):
                value = _QUOTED_PAIR.sub(r"\1", value[1:-1])
            parameters[key] = value

    return ContentType(type=media_type.lower(), parameters=parameters)


def get_charset(headers: Mapping[str, str]) -> Optional[str]:
    """Return the lower-cased charset parameter, or None if absent or unparsable."""
    try:
        content_type = parse_content_type(headers.get("content-type", ""))
    except ValueError:
        return None
    return content_type.parameters.get("charset", "").lower() or None


def assert_supported_charset(charset: str) -> str:
    """Return the charset when it belongs to the UTF family, else raise."""
    if charset[:4].lower() != "utf-":
        raise CharsetUnsupportedError(charset)
    return charset
