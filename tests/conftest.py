"""
Root conftest for tests.

Ensures every test starts without a trace ID left in the logging context.
"""

import pytest

from libs.core.common.logging import clear_trace_id


@pytest.fixture(autouse=True)
def _reset_trace_id():
    clear_trace_id()
    yield
    clear_trace_id()
