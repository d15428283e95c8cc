# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import json
import os
import tempfile
from pathlib import Path
from unittest import TestCase

from pydantic import ValidationError

from jsonbodyparser.core.config import load_parser_config, parse_size
from jsonbodyparser.models.options import ParseOptions
from jsonbodyparser.services.json_body_ops import json_parser


class ParseSizeTest(TestCase):
    def test_units_are_1024_based(self):
        self.assertEqual(parse_size("1kb"), 1024)
        self.assertEqual(parse_size("100kb"), 102400)
        self.assertEqual(parse_size("1.5mb"), int(1.5 * 1024 * 1024))
        self.assertEqual(parse_size("2 GB"), 2 * 1024**3)

    def test_plain_numbers_are_bytes(self):
        self.assertEqual(parse_size("512"), 512)
        self.assertEqual(parse_size(2048), 2048)

    def test_garbage_is_rejected(self):
        for bad in ("lots", "10 parsecs", "", True):
            with self.assertRaises(ValueError):
                parse_size(bad)


class ParserConfigLoaderTest(TestCase):
    def test_env_overrides_file_and_defaults(self):
        with tempfile.TemporaryDirectory() as td:
            cfg_path = Path(td) / "parser.json"
            cfg_path.write_text(
                json.dumps(
                    {
                        "limit": "${BODY_LIMIT}",
                        "strict": True,
                        "type": ["application/json"],
                    }
                ),
                encoding="utf-8",
            )

            defaults = {"inflate": True, "limit": "1kb"}

            os.environ["BODY_LIMIT"] = "2mb"
            os.environ["JSONBODY_STRICT"] = "false"
            os.environ["JSONBODY_TYPE"] = "application/json, application/vnd.api+json"

            try:
                cfg = load_parser_config(cfg_path, defaults)
            finally:
                os.environ.pop("BODY_LIMIT")
                os.environ.pop("JSONBODY_STRICT")
                os.environ.pop("JSONBODY_TYPE")

            self.assertEqual(cfg["limit"], "2mb")
            self.assertIs(cfg["inflate"], True)
            self.assertIs(cfg["strict"], False)
            self.assertEqual(
                cfg["type"], ["application/json", "application/vnd.api+json"]
            )

    def test_numeric_env_limit_and_missing_file(self):
        os.environ["JSONBODY_LIMIT"] = "4096"
        try:
            cfg = load_parser_config(Path("does/not/exist.json"))
        finally:
            os.environ.pop("JSONBODY_LIMIT")
        self.assertEqual(cfg, {"limit": 4096})

    def test_malformed_file_raises(self):
        with tempfile.TemporaryDirectory() as td:
            cfg_path = Path(td) / "parser.json"
            cfg_path.write_text("{nope", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_parser_config(cfg_path)

    def test_loaded_config_builds_parser(self):
        with tempfile.TemporaryDirectory() as td:
            cfg_path = Path(td) / "parser.json"
            cfg_path.write_text(
                json.dumps({"limit": "1kb", "inflate": False}), encoding="utf-8"
            )
            parser = json_parser(load_parser_config(cfg_path))
        self.assertEqual(parser.options.limit, 1024)
        self.assertFalse(parser.options.inflate)


class ParseOptionsTest(TestCase):
    def test_defaults(self):
        options = ParseOptions()
        self.assertEqual(options.limit, 102400)
        self.assertTrue(options.inflate)
        self.assertTrue(options.strict)
        self.assertEqual(options.type, ("application/json",))
        self.assertIsNone(options.verify)
        self.assertIsNone(options.reviver)
        self.assertEqual(options.empty_default_value, {})

    def test_options_are_frozen(self):
        options = ParseOptions(limit="1kb")
        with self.assertRaises(ValidationError):
            options.limit = 10

    def test_unknown_option_is_rejected(self):
        with self.assertRaises(ValidationError):
            ParseOptions(limt="1kb")

    def test_invalid_limit_is_rejected(self):
        with self.assertRaises(ValidationError):
            ParseOptions(limit="a lot")

    def test_empty_default_value_is_snapshotted(self):
        default = {"items": []}
        options = ParseOptions(empty_default_value=default)
        default["items"].append(1)
        self.assertEqual(options.empty_default_value, {"items": []})

        first = options.empty_value()
        first["items"].append("mutated by a handler")
        self.assertEqual(options.empty_value(), {"items": []})

    def test_verify_must_be_callable(self):
        with self.assertRaisesRegex(TypeError, "option verify must be function"):
            json_parser(verify="lol")

    def test_verify_false_disables_hook(self):
        parser = json_parser(verify=False)
        self.assertIsNone(parser.options.verify)

    def test_caller_mapping_changes_do_not_reach_parser(self):
        options = {"limit": "1kb"}
        parser = json_parser(options)
        options["limit"] = "100kb"
        self.assertEqual(parser.options.limit, 1024)

    def test_options_instance_with_overrides(self):
        base = ParseOptions(limit="1kb")
        parser = json_parser(base, strict=False)
        self.assertEqual(parser.options.limit, 1024)
        self.assertFalse(parser.options.strict)
        self.assertIs(json_parser(base).options, base)
