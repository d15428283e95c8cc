# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Strict-mode check on the outermost JSON token."""

from __future__ import annotations

import re
from typing import Optional

from jsonbodyparser.services.exceptions import EntityParseError

# Allowed whitespace is defined in RFC 7159:
#    ws = *( %x20 / %x09 / %x0A / %x0D )
_FIRST_CHAR_PATTERN = re.compile(r"[\x20\x09\x0a\x0d]*(.)", re.DOTALL)

STRICT_OPENERS = ("{", "[")


def first_char(text: str) -> Optional[str]:
    """Return the first non-whitespace character, or None for blank text."""
    match = _FIRST_CHAR_PATTERN.match(text)
    return match.group(1) if match else None


def assert_strict_syntax(text: str) -> None:
    if first_char(text) not in STRICT_OPENERS:
        raise EntityParseError("Strict syntax violation")
