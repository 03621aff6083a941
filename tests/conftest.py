"""
Shared test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during tests, and provides a controllable millisecond clock.
"""

import pytest

# 2023-11-14T22:13:20Z
T0 = 1_700_000_000_000


class FakeClock:
    """Callable millisecond clock that only moves when told to."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def set(self, ms: int) -> None:
        self.now = ms


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
