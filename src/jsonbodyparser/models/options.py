# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
# Purpose: Defines the options unit so this responsibility stays isolated, testable, and easy to evolve.

"""
Pydantic model for the parser options snapshot.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jsonbodyparser.core.config import (
    DEFAULT_LIMIT,
    DEFAULT_SEGMENT_SIZE,
    DEFAULT_TYPE,
    parse_size,
)


class ParseOptions(BaseModel):
    """Immutable options taken once when a parser is built.

    ``limit`` accepts bytes or a human size string. ``type`` accepts a media
    type, a list of them, or a predicate over the request.
    ``empty_default_value`` is deep-copied on the way in, so mutating the
    caller's object afterwards changes nothing.
    """

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, extra="forbid"
    )

    limit: int = Field(default=parse_size(DEFAULT_LIMIT), ge=0)
    inflate: bool = True
    reviver: Optional[Callable[[Any, Any], Any]] = None
    strict: bool = True
    type: Union[tuple[str, ...], Callable[..., Any]] = (DEFAULT_TYPE,)
    verify: Optional[Callable[..., Any]] = None
    empty_default_value: Any = Field(default_factory=dict)
    segment_size: int = Field(default=DEFAULT_SEGMENT_SIZE, gt=0)

    @field_validator("limit", mode="before")
    @classmethod
    def _parse_limit(cls, value: Any) -> Any:
        if value is None:
            return parse_size(DEFAULT_LIMIT)
        if isinstance(value, (str, float)) and not isinstance(value, bool):
            return parse_size(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if value is None or value == "" or value == []:
            return (DEFAULT_TYPE,)
        if isinstance(value, str):
            return (value,)
        if isinstance(value, list):
            return tuple(value)
        return value

    @field_validator("verify", mode="before")
    @classmethod
    def _check_verify(cls, value: Any) -> Any:
        if value is None or value is False:
            return None
        if not callable(value):
            raise TypeError("option verify must be function")
        return value

    @field_validator("empty_default_value", mode="before")
    @classmethod
    def _snapshot_default(cls, value: Any) -> Any:
        return copy.deepcopy(value)

    def empty_value(self) -> Any:
        """Fresh copy of ``empty_default_value`` for one request."""
        return copy.deepcopy(self.empty_default_value)
