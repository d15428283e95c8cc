# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the main unit so this responsibility stays isolated, testable, and easy to evolve.

Demo server for the JSON body parser: a FastAPI app with the middleware
installed, an echo endpoint and a health check, runnable from the CLI.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Mapping, Optional

from fastapi import APIRouter, FastAPI, Request

from jsonbodyparser.api.http_responses import ok_json
from jsonbodyparser.api.middleware import JsonBodyMiddleware, install_error_handler
from jsonbodyparser.core.config import load_parser_config
from jsonbodyparser.services.json_body_ops import json_parser


def create_app(options: Optional[Mapping[str, Any]] = None) -> FastAPI:
    """Create the FastAPI app.

    Without explicit options the parser is configured from
    ``$JSONBODY_CONFIG`` (default config/parser.json) and JSONBODY_* variables.
    """
    if options is None:
        options = load_parser_config(
            os.getenv("JSONBODY_CONFIG", "config/parser.json")
        )

    app = FastAPI(title="jsonbodyparser")
    app.add_middleware(JsonBodyMiddleware, parser=json_parser(options))

    router = APIRouter()

    @router.post("/echo")
    async def echo(request: Request):
        return ok_json({"ok": True, "body": request.state.body})

    router.add_api_route("/health", endpoint=lambda: {"status": "ok"}, methods=["GET"])
    app.include_router(router)

    install_error_handler(app)
    return app


def build_arg_parser() -> argparse.ArgumentParser:
    """Build Arg Parser."""
    parser = argparse.ArgumentParser(
        prog="jsonbodyparser",
        description="Run a demo FastAPI server that parses JSON request bodies",
    )
    parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind (default: 8000)"
    )
    parser.add_argument(
        "--config",
        default="config/parser.json",
        help="Parser options JSON file (default: config/parser.json)",
    )
    parser.add_argument("--limit", default=None, help="Body size limit, e.g. 1mb")
    parser.add_argument(
        "--type",
        action="append",
        default=None,
        help="Media type to parse (repeatable, default: application/json)",
    )
    parser.add_argument(
        "--no-strict",
        action="store_true",
        help="Accept primitive JSON values at the top level",
    )
    parser.add_argument(
        "--no-inflate",
        action="store_true",
        help="Reject gzip/deflate encoded bodies",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="Log level for the server (default: info)",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> dict[str, Any]:
    options = load_parser_config(args.config)
    if args.limit is not None:
        options["limit"] = args.limit
    if args.type:
        options["type"] = args.type
    if args.no_strict:
        options["strict"] = False
    if args.no_inflate:
        options["inflate"] = False
    return options


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entrypoint to run the demo server.

    Examples:
      python -m jsonbodyparser.main --help
      python -m jsonbodyparser.main --limit 1mb --type application/vnd.api+json
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.log_level in ("debug", "trace"):
        logging.basicConfig(level=logging.DEBUG)

    # Import uvicorn lazily so that importing this module doesn't require it for tests/tools
    import uvicorn  # type: ignore

    uvicorn.run(
        create_app(options_from_args(args)),
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
