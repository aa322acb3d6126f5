"""
Shared test fixtures for the recoverer test suite.
"""

import io

import pytest

from recoverer import expvar


@pytest.fixture
def log_buffer():
    return io.StringIO()


@pytest.fixture
def registry():
    reg = expvar.Registry()
    reg.publish("requests", expvar.Int(7))
    reg.publish("build", expvar.String("v1.2.3"))
    return reg
