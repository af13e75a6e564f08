# tests/conftest.py
from __future__ import annotations

import asyncio
import inspect
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from spamscan.settings import reset_settings_cache  # noqa: E402
from spamscan.telemetry import logging as telemetry_logging  # noqa: E402
from spamscan.telemetry.logging import JsonFormatter  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for var in (
        "SPAMSCAN_MARKERS",
        "SPAMSCAN_DELAY_PER_SYMBOL_MS",
        "SPAMSCAN_FRAGMENTER",
        "SPAMSCAN_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def root_logging(monkeypatch):
    """Let a test install the JSON handler, then put the root logger back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    root.handlers[:] = [h for h in handlers if not isinstance(h.formatter, JsonFormatter)]
    monkeypatch.setattr(telemetry_logging, "_handler", None)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Minimal asyncio support without requiring pytest-asyncio."""

    test_func = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_func):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            call_kwargs = {
                name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
            }
            loop.run_until_complete(test_func(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None
