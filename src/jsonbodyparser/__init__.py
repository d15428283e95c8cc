# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""JSON request body parsing for ASGI applications.

Build a parser once with ``json_parser(...)`` and use it through
``JsonBodyMiddleware`` or the ``json_body`` FastAPI dependency.
"""

from jsonbodyparser.api.middleware import (
    JsonBodyMiddleware,
    install_error_handler,
    json_body,
)
from jsonbodyparser.models.options import ParseOptions
from jsonbodyparser.services.decoding.yielding_decoder import OMIT, decode_json
from jsonbodyparser.services.exceptions import (
    BodyParserError,
    CharsetUnsupportedError,
    ContentDecodingError,
    EncodingUnsupportedError,
    EntityParseError,
    EntityTooLargeError,
    EntityVerifyError,
    RequestAbortedError,
    RequestSizeInvalidError,
)
from jsonbodyparser.services.json_body_ops import (
    JsonBodyParser,
    ParseOutcome,
    json_parser,
)

__all__ = [
    "OMIT",
    "BodyParserError",
    "CharsetUnsupportedError",
    "ContentDecodingError",
    "EncodingUnsupportedError",
    "EntityParseError",
    "EntityTooLargeError",
    "EntityVerifyError",
    "JsonBodyMiddleware",
    "JsonBodyParser",
    "ParseOptions",
    "ParseOutcome",
    "RequestAbortedError",
    "RequestSizeInvalidError",
    "decode_json",
    "install_error_handler",
    "json_body",
    "json_parser",
]
