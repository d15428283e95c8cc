# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the yielding decoder unit so this responsibility stays isolated, testable, and easy to evolve.

Non-blocking JSON decoding. The text is handed to the async event parser of
ijson's pure Python backend in fixed-size segments, and the event loop gets
control back between segments, so decoding a large body never monopolizes
the loop. Values are assembled from the event stream, applying an optional
reviver as each value completes.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import ijson

from jsonbodyparser.core.config import DEFAULT_SEGMENT_SIZE

# Arbitrary precision ints and lone surrogate escapes survive this backend
_BACKEND = ijson.get_backend("python")

Reviver = Callable[[Any, Any], Any]


class _Omit:
    def __repr__(self) -> str:
        return "OMIT"


# Returned by a reviver to drop an object member.
OMIT: Any = _Omit()

_NOTHING = object()


class SegmentedReader:
    """Async file-like view over encoded text that yields between segments."""

    def __init__(self, data: bytes, segment_size: int = DEFAULT_SEGMENT_SIZE):
        self._data = memoryview(data)
        self._offset = 0
        self.segment_size = segment_size
        self.segments_served = 0

    async def read(self, size: int = -1) -> bytes:
        if self.segments_served:
            # Let other tasks run before handing out the next segment
            await asyncio.sleep(0)
        if size is None or size < 0 or size > self.segment_size:
            size = self.segment_size
        chunk = self._data[self._offset : self._offset + size]
        self._offset += len(chunk)
        self.segments_served += 1
        return bytes(chunk)


class ValueBuilder:
    """Assemble Python values from ijson ``basic_parse`` events."""

    def __init__(self, reviver: Optional[Reviver] = None):
        self._reviver = reviver
        self._stack: list[list[Any]] = []
        self._root: Any = _NOTHING

    @property
    def complete(self) -> bool:
        return self._root is not _NOTHING and not self._stack

    @property
    def value(self) -> Any:
        return None if self._root is _NOTHING or self._root is OMIT else self._root

    def event(self, event: str, value: Any) -> None:
        if event == "map_key":
            self._stack[-1][1] = value
        elif event == "start_map":
            self._stack.append([{}, None])
        elif event == "start_array":
            self._stack.append([[], None])
        elif event in ("end_map", "end_array"):
            container, _ = self._stack.pop()
            self._attach(container)
        else:
            self._attach(value)

    def _revive(self, key: Any, value: Any) -> Any:
        if self._reviver is None:
            return value
        return self._reviver(key, value)

    def _attach(self, value: Any) -> None:
        if not self._stack:
            self._root = self._revive("", value)
            return

        container, key = self._stack[-1]
        if isinstance(container, list):
            revived = self._revive(len(container), value)
            container.append(None if revived is OMIT else revived)
            return

        revived = self._revive(key, value)
        if revived is OMIT:
            container.pop(key, None)
        else:
            container[key] = revived


async def decode_json(
    text: str,
    reviver: Optional[Reviver] = None,
    *,
    segment_size: int = DEFAULT_SEGMENT_SIZE,
) -> Any:
    """Decode JSON text cooperatively.

    Raises the parser's own error (``ijson.JSONError`` and friends) unchanged
    for malformed, incomplete or trailing input; the caller normalizes it.
    """
    reader = SegmentedReader(text.encode("utf-8"), segment_size)
    builder = ValueBuilder(reviver)
    async for event, value in _BACKEND.basic_parse_async(
        reader, buf_size=segment_size, use_float=True
    ):
        builder.event(event, value)

    if not builder.complete:
        raise ijson.IncompleteJSONError("Incomplete JSON content")
    return builder.value
