# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the test json decoding unit so this responsibility stays isolated, testable, and easy to evolve."""

import asyncio
import json
import unittest

import ijson

from request_factory import make_request, run

from jsonbodyparser.services.decoding.error_normalizer import normalize_parse_error
from jsonbodyparser.services.decoding.strict_guard import (
    assert_strict_syntax,
    first_char,
)
from jsonbodyparser.services.decoding.yielding_decoder import (
    OMIT,
    SegmentedReader,
    decode_json,
)
from jsonbodyparser.services.exceptions import (
    CharsetUnsupportedError,
    EntityParseError,
)
from jsonbodyparser.services.json_body_ops import json_parser


class StrictGuardTest(unittest.TestCase):
    def test_first_char_skips_rfc7159_whitespace_only(self):
        self.assertEqual(first_char(" \t\r\n{}"), "{")
        self.assertEqual(first_char("\u00a0{}"), "\u00a0")
        self.assertIsNone(first_char(""))
        self.assertIsNone(first_char("  \n "))

    def test_objects_and_arrays_pass(self):
        assert_strict_syntax('{"a": 1}')
        assert_strict_syntax("   [1, 2]")

    def test_primitives_and_blank_text_fail(self):
        for text in ("true", "    true", "1", '"str"', "null", "   "):
            with self.assertRaises(EntityParseError) as ctx:
                assert_strict_syntax(text)
            self.assertEqual(ctx.exception.detail, "Strict syntax violation")
            self.assertEqual(ctx.exception.status_code, 400)
            self.assertEqual(ctx.exception.kind, "entity.parse.failed")


class YieldingDecoderTest(unittest.TestCase):
    def test_decodes_nested_values(self):
        text = '{"user": "tobi", "n": [1, 2.5, true, null], "o": {"k": "\\u8bba"}}'
        value = run(decode_json(text))
        self.assertEqual(
            value,
            {"user": "tobi", "n": [1, 2.5, True, None], "o": {"k": "论"}},
        )
        self.assertIsInstance(value["n"][0], int)
        self.assertIsInstance(value["n"][1], float)

    def test_primitives_decode_outside_strict_mode(self):
        self.assertIs(run(decode_json("true")), True)
        self.assertEqual(run(decode_json(' "x" ')), "x")
        self.assertIsNone(run(decode_json("null")))

    def test_round_trip_matches_stdlib_encoding(self):
        values = [
            {"a": {"b": [1, {"c": "d"}]}, "e": -3.25, "f": ""},
            [[], {}, [[]], "å论"],
            {"big": list(range(500))},
        ]
        for value in values:
            self.assertEqual(run(decode_json(json.dumps(value))), value)

    def test_wide_ints_and_lone_surrogates_round_trip(self):
        for value in (
            {"id": 2**64},
            [12345678901234567890123, -(2**70)],
            {"s": "\ud800"},
        ):
            self.assertEqual(run(decode_json(json.dumps(value))), value)

    def test_malformed_input_raises_parser_error(self):
        for text in ("{:", '{"user"', "{", '{"a": 1} trailing', "[1,]"):
            with self.assertRaises(ijson.JSONError):
                run(decode_json(text))

    def test_reviver_runs_bottom_up(self):
        calls = []

        def reviver(key, value):
            calls.append(key)
            if key == "secret":
                return OMIT
            if isinstance(value, int):
                return value * 10
            return value

        value = run(
            decode_json('{"a": 1, "secret": "x", "list": [1, 2]}', reviver)
        )
        self.assertEqual(value, {"a": 10, "list": [10, 20]})
        self.assertEqual(calls, ["a", "secret", 0, 1, "list", ""])

    def test_reviver_omit_in_list_leaves_none(self):
        value = run(decode_json("[1, 2, 3]", lambda k, v: OMIT if v == 2 else v))
        self.assertEqual(value, [1, None, 3])

    def test_reviver_omit_removes_duplicate_key(self):
        text = '{"a": 1, "a": 2}'
        value = run(decode_json(text, lambda k, v: OMIT if v == 2 else v))
        self.assertEqual(value, {})

    def test_segments_yield_to_other_tasks(self):
        payload = json.dumps({"items": ["x" * 50 for _ in range(200)]})
        ticks = []

        async def ticker():
            while True:
                ticks.append(1)
                await asyncio.sleep(0)

        async def scenario():
            task = asyncio.ensure_future(ticker())
            try:
                value = await decode_json(payload, segment_size=256)
            finally:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            return value

        value = run(scenario())
        self.assertEqual(len(value["items"]), 200)
        # One segment per 256 bytes; the ticker must have run in between
        self.assertGreater(len(ticks), len(payload) // 256 // 2)

    def test_segmented_reader_caps_reads(self):
        reader = SegmentedReader(b"abcdefghij", segment_size=4)

        async def read_all():
            parts = []
            while True:
                part = await reader.read(100)
                if not part:
                    return parts
                parts.append(part)

        self.assertEqual(run(read_all()), [b"abcd", b"efgh", b"ij"])


class DeepNestingTest(unittest.TestCase):
    def test_deep_arrays_under_default_limit(self):
        depth = 50000
        body = b"[" * depth + b"]" * depth
        request, _ = make_request(body, {"content-type": "application/json"})
        outcome = run(json_parser()(request))
        self.assertTrue(outcome.parsed)

        # Walk down without recursion
        level, node = 0, outcome.value
        while node:
            self.assertEqual(len(node), 1)
            level, node = level + 1, node[0]
        self.assertEqual(level, depth - 1)
        self.assertEqual(node, [])


class ErrorNormalizerTest(unittest.TestCase):
    def test_only_message_and_trace_survive(self):
        try:
            raise ValueError("Unexpected token } in JSON")
        except ValueError as exc:
            exc.position = 17
            exc.lineno = 1
            raw = exc

        err = normalize_parse_error(raw)
        self.assertIsInstance(err, EntityParseError)
        self.assertEqual(err.detail, "Unexpected token } in JSON")
        self.assertEqual(err.status_code, 400)
        self.assertEqual(err.kind, "entity.parse.failed")
        self.assertIn("ValueError", err.diagnostic_trace)
        self.assertFalse(hasattr(err, "position"))
        self.assertFalse(hasattr(err, "lineno"))
        self.assertEqual(
            err.to_payload(),
            {"detail": "Unexpected token } in JSON", "type": "entity.parse.failed"},
        )

    def test_multi_line_message_keeps_first_line(self):
        raw = ValueError(
            "parse error: trailing garbage\n"
            '    {"user": "tobi"} x\n'
            "                     (right here) ------^\n"
        )
        err = normalize_parse_error(raw)
        self.assertEqual(err.detail, "parse error: trailing garbage")
        self.assertIn("(right here)", err.diagnostic_trace)
        self.assertNotIn("tobi", err.to_payload()["detail"])

    def test_parser_error_is_normalized(self):
        with self.assertRaises(ijson.JSONError) as ctx:
            run(decode_json('{"user"'))
        err = normalize_parse_error(ctx.exception)
        self.assertEqual(err.kind, "entity.parse.failed")
        self.assertTrue(err.detail)

    def test_classified_errors_pass_through(self):
        original = CharsetUnsupportedError("koi8-r")
        self.assertIs(normalize_parse_error(original), original)
