"""
Unit test fixtures for the challenge service and its stores.

Tests control config exclusively through explicit ChallengeSettings values or
monkeypatch.setenv().
"""

import pytest

from config import ChallengeSettings
from infrastructure.captcha.memory_store import InMemoryChallengeStore
from services.challenge_service import ChallengeService


@pytest.fixture
def challenge_settings() -> ChallengeSettings:
    return ChallengeSettings(
        challenge_length=6,
        challenge_validity_seconds=600,
        challenge_clock_skew_seconds=60,
        challenge_sweep_interval_seconds=600,
    )


@pytest.fixture
def memory_store() -> InMemoryChallengeStore:
    return InMemoryChallengeStore()


@pytest.fixture
def service(memory_store, challenge_settings, clock) -> ChallengeService:
    return ChallengeService(memory_store, challenge_settings, clock=clock)
