# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""JSON body parsing pipeline.

Purpose: Sequence the per-request stages in a fixed order:

    finished? -> has body? -> type match? -> charset -> read (limit, inflate,
    verify) -> empty body? -> strict guard -> yielding decode -> normalize

and report the result as a ``ParseOutcome``. Classified failures are returned,
not raised, so the ASGI layer decides how to render them. A successful parse
is attached to ``request.state.body``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from starlette.requests import Request

from jsonbodyparser.models.options import ParseOptions
from jsonbodyparser.services.decoding.error_normalizer import normalize_parse_error
from jsonbodyparser.services.decoding.strict_guard import assert_strict_syntax
from jsonbodyparser.services.decoding.yielding_decoder import decode_json
from jsonbodyparser.services.exceptions import BodyParserError
from jsonbodyparser.services.matching.charset import (
    DEFAULT_CHARSET,
    assert_supported_charset,
    get_charset,
)
from jsonbodyparser.services.matching.type_matcher import (
    compile_type_matcher,
    has_body,
)
from jsonbodyparser.services.reading.stream_reader import read_body

logger = logging.getLogger(__name__)

# scope["state"] key marking that the body stream has been taken by a parser
BODY_CONSUMED_KEY = "json_body_consumed"


@dataclass
class ParseOutcome:
    """Result of running the pipeline for one request.

    Exactly one of three shapes: parsed (``parsed`` is True and ``value`` holds
    the body), failed (``error`` is set), or passed through (neither).
    """

    value: Any = None
    error: Optional[BodyParserError] = None
    parsed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def passthrough(cls) -> "ParseOutcome":
        return cls()

    @classmethod
    def failure(cls, error: BodyParserError) -> "ParseOutcome":
        return cls(error=error)


def is_finished(request: Request) -> bool:
    """Whether the body was already consumed by a parser or the client left."""
    state = request.scope.get("state") or {}
    return bool(state.get(BODY_CONSUMED_KEY))


def _ensure_body_slot(request: Request) -> None:
    state = request.scope.setdefault("state", {})
    state.setdefault("body", None)


class JsonBodyParser:
    """Configured JSON body parser; one instance serves any number of requests."""

    def __init__(self, options: ParseOptions):
        self.options = options
        self._should_parse = compile_type_matcher(options.type)

    async def parse_text(self, text: str) -> Any:
        """Turn decoded body text into a value, or raise a classified error."""
        if not text:
            # special-case empty json body, as it's a common client-side mistake
            logger.debug("empty body, using default value")
            return self.options.empty_value()

        if self.options.strict:
            assert_strict_syntax(text)

        try:
            return await decode_json(
                text, self.options.reviver, segment_size=self.options.segment_size
            )
        except Exception as exc:
            raise normalize_parse_error(exc) from exc

    async def __call__(self, request: Request) -> ParseOutcome:
        if is_finished(request):
            logger.debug("body already parsed")
            return ParseOutcome.passthrough()

        _ensure_body_slot(request)

        if not has_body(request.headers):
            logger.debug("skip empty body")
            return ParseOutcome.passthrough()

        if not self._should_parse(request):
            logger.debug("skip parsing: content-type mismatch")
            return ParseOutcome.passthrough()

        charset = get_charset(request.headers) or DEFAULT_CHARSET
        try:
            assert_supported_charset(charset)
        except BodyParserError as exc:
            logger.debug("invalid charset %s", charset)
            return ParseOutcome.failure(exc)

        request.scope["state"][BODY_CONSUMED_KEY] = True
        logger.debug("parse json body (charset %s)", charset)
        try:
            value = await read_body(
                request,
                self.parse_text,
                encoding=charset,
                inflate=self.options.inflate,
                limit=self.options.limit,
                verify=self.options.verify,
            )
        except BodyParserError as exc:
            logger.debug(
                "json body rejected: %s (%s)\n%s",
                exc.kind,
                exc.detail,
                exc.diagnostic_trace,
            )
            return ParseOutcome.failure(exc)

        request.scope["state"]["body"] = value
        return ParseOutcome(value=value, parsed=True)


def json_parser(
    options: Optional[Mapping[str, Any] | ParseOptions] = None, **overrides: Any
) -> JsonBodyParser:
    """Build a JSON body parser from an options mapping and/or keyword overrides.

    The options are snapshotted here; later changes to the caller's mapping do
    not reach the parser. A non-callable ``verify`` raises ``TypeError``.
    """
    if isinstance(options, ParseOptions):
        if not overrides:
            return JsonBodyParser(options)
        options = dict(options)

    merged: dict[str, Any] = dict(options or {})
    merged.update(overrides)
    verify = merged.get("verify")
    if verify and not callable(verify):
        raise TypeError("option verify must be function")
    if not verify:
        merged["verify"] = None
    return JsonBodyParser(ParseOptions(**merged))
