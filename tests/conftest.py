# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the conftest unit so this responsibility stays isolated, testable, and easy to evolve."""

import os
import pytest

_PARSER_ENV_VARS = (
    "JSONBODY_CONFIG",
    "JSONBODY_LIMIT",
    "JSONBODY_INFLATE",
    "JSONBODY_STRICT",
    "JSONBODY_TYPE",
)


@pytest.fixture(scope="session", autouse=True)
def session_clean_env():
    # Parser options read from the environment must not leak in from the shell
    originals = {name: os.environ.pop(name, None) for name in _PARSER_ENV_VARS}

    yield

    for name, value in originals.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)
