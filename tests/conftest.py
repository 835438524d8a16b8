"""
Global pytest configuration and fixtures.
"""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep environment-derived defaults deterministic.

    The default for strict response validation depends on HTTPRPC_ENV, ENV
    and HTTPRPC_STRICT_RESPONSES; tests that need them set them explicitly.
    """
    for name in ("HTTPRPC_ENV", "ENV", "HTTPRPC_STRICT_RESPONSES", "HTTPRPC_DEBUG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def schemas_dir() -> Path:
    return FIXTURES_DIR / "schemas"


class RecordingLogger:
    """Stands in for a consumer-supplied logger."""

    def __init__(self):
        self.messages: list[str] = []

    def error(self, msg: str) -> None:
        self.messages.append(msg)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
