# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the middleware unit so this responsibility stays isolated, testable, and easy to evolve.

ASGI and FastAPI integration for the JSON body parser: a pure ASGI
middleware, a per-route dependency, and the exception handler that renders
classified errors.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from starlette.requests import Request as StarletteRequest
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from jsonbodyparser.api.http_responses import classified_error_json
from jsonbodyparser.services.exceptions import BodyParserError, RequestAbortedError
from jsonbodyparser.services.json_body_ops import JsonBodyParser, json_parser

logger = logging.getLogger(__name__)


class _ReplayReceive:
    """Records request messages read by the parser and replays them downstream."""

    def __init__(self, receive: Receive):
        self._receive = receive
        self._recorded: list[Message] = []
        self._replay_index = 0

    async def record(self) -> Message:
        message = await self._receive()
        if message.get("type") == "http.request":
            self._recorded.append(message)
        return message

    async def replay(self) -> Message:
        if self._replay_index < len(self._recorded):
            message = self._recorded[self._replay_index]
            self._replay_index += 1
            return message
        return await self._receive()


class JsonBodyMiddleware:
    """ASGI middleware that parses JSON bodies into ``request.state.body``.

    Classified failures are answered directly with
    ``{"ok": false, "detail": ..., "type": ...}`` and the matching status.
    Aborted requests get no response since the client is gone.
    """

    def __init__(
        self, app: ASGIApp, parser: Optional[JsonBodyParser] = None, **options: Any
    ):
        self.app = app
        self.parser = parser if parser is not None else json_parser(options)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        channel = _ReplayReceive(receive)
        outcome = await self.parser(StarletteRequest(scope, channel.record))

        if outcome.error is not None:
            if isinstance(outcome.error, RequestAbortedError):
                logger.debug("client disconnected while reading body")
                return
            response = classified_error_json(outcome.error)
            await response(scope, receive, send)
            return

        await self.app(scope, channel.replay, send)


def json_body(
    parser: Optional[JsonBodyParser] = None, **options: Any
) -> Callable[[Request], Awaitable[Any]]:
    """Build a FastAPI dependency returning the parsed body of the request.

    Classified failures are raised; ``install_error_handler`` renders them.
    """
    active = parser if parser is not None else json_parser(options)

    async def dependency(request: Request) -> Any:
        outcome = await active(request)
        if outcome.error is not None:
            raise outcome.error
        return request.state.body

    return dependency


def install_error_handler(app: FastAPI) -> None:
    @app.exception_handler(BodyParserError)
    async def _body_parser_error_handler(_request: Request, exc: BodyParserError):
        logger.debug("classified body error %s: %s", exc.kind, exc.detail)
        return classified_error_json(exc)
