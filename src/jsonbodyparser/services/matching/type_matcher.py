# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the type matcher unit so this responsibility stays isolated, testable, and easy to evolve.

Decides whether a request should be parsed at all. Two variants exist and one
is picked at construction time: a static list of media types matched against
the Content-Type header, or a caller-supplied predicate over the request.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Union

from starlette.requests import Request

from jsonbodyparser.services.matching.charset import parse_content_type

TypePredicate = Callable[[Request], bool]


def has_body(headers: Mapping[str, str]) -> bool:
    """Return whether transport framing says the request carries a body."""
    if headers.get("transfer-encoding") is not None:
        return True
    content_length = headers.get("content-length")
    if content_length is None:
        return False
    try:
        int(content_length.strip())
    except ValueError:
        return False
    return True


def normalize_type(name: str) -> Optional[str]:
    """Expand shorthand type names into full media type patterns.

    ``json`` -> ``application/json``, ``+json`` -> ``*/*+json``,
    ``urlencoded`` and ``multipart`` follow the usual conventions.
    """
    name = name.strip().lower()
    if name == "urlencoded":
        return "application/x-www-form-urlencoded"
    if name == "multipart":
        return "multipart/*"
    if name.startswith("+"):
        return "*/*" + name
    if "/" in name:
        return name
    guessed, _ = mimetypes.guess_type("file." + name.lstrip("."), strict=False)
    return guessed


def _mime_match(expected: str, actual: str) -> bool:
    expected_parts = expected.split("/")
    actual_parts = actual.split("/")
    if len(expected_parts) != 2 or len(actual_parts) != 2:
        return False

    if expected_parts[0] != "*" and expected_parts[0] != actual_parts[0]:
        return False

    if expected_parts[1].startswith("*+"):
        suffix = expected_parts[1][1:]
        return len(actual_parts[1]) > len(suffix) and actual_parts[1].endswith(
            suffix
        )

    return expected_parts[1] == "*" or expected_parts[1] == actual_parts[1]


def type_is(content_type: Optional[str], types: Iterable[str]) -> Optional[str]:
    """Return the first type name matching the header, or None."""
    if not content_type:
        return None
    try:
        actual = parse_content_type(content_type).type
    except ValueError:
        return None

    for name in types:
        expected = normalize_type(name)
        if expected and _mime_match(expected, actual):
            return name
    return None


@dataclass(frozen=True)
class StaticTypeMatcher:
    """Matches the Content-Type header against a fixed list of media types."""

    types: tuple[str, ...]

    def __call__(self, request: Request) -> bool:
        return type_is(request.headers.get("content-type"), self.types) is not None


@dataclass(frozen=True)
class PredicateTypeMatcher:
    """Delegates the decision to a caller-supplied predicate."""

    predicate: TypePredicate

    def __call__(self, request: Request) -> bool:
        return bool(self.predicate(request))


TypeMatcher = Union[StaticTypeMatcher, PredicateTypeMatcher]


def compile_type_matcher(
    option: Union[str, Iterable[str], TypePredicate],
) -> TypeMatcher:
    """Select the matcher variant for a ``type`` option."""
    if callable(option):
        return PredicateTypeMatcher(option)
    if isinstance(option, str):
        return StaticTypeMatcher((option,))
    return StaticTypeMatcher(tuple(option))
