"""
Human-verification challenge service.

Issues a short alphanumeric challenge bound to a single-use token and later
verifies the token (and, when given, the typed answer) at most once within the
validity window.

Per token: ISSUED -> CONSUMED on a successful verification, ISSUED -> EXPIRED
once the validity window passes. A failed attempt leaves the token ISSUED, so
it can be retried until it expires. There is no attempt cap.

Verification never raises. Every rejection comes back as a VerificationResult
carrying a ChallengeFailure; unexpected store errors are logged and reported
as ChallengeFailure.INTERNAL_ERROR.
"""

from __future__ import annotations

import asyncio
import contextlib
import re
import secrets
from dataclasses import dataclass
from typing import Optional

from config import ChallengeSettings
from errors import ChallengeFailure, ServiceUnavailableError
from infrastructure.captcha.protocol import ChallengeStore
from schemas.models.challenge import ChallengeRecord
from shared.datetime_utils import Clock, now_ms, parse_token_timestamp
from shared.generators import generate_challenge_text, generate_challenge_token
from shared.logging import get_logger

log = get_logger(__name__)

# Token collisions need 128 random bits to repeat; a handful of retries is plenty
_MAX_ISSUE_ATTEMPTS = 5


@dataclass(frozen=True)
class Challenge:
    challenge: str
    display_text: str
    token: str


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    failure: Optional[ChallengeFailure] = None


_ACCEPTED = VerificationResult(valid=True)


class ChallengeService:
    """Owns the challenge store and the background sweep that bounds it."""

    def __init__(
        self,
        store: ChallengeStore,
        settings: Optional[ChallengeSettings] = None,
        clock: Clock = now_ms,
    ) -> None:
        self._store = store
        self._settings = settings or ChallengeSettings()
        self._clock = clock
        self._token_pattern = re.compile(
            rf"^{re.escape(self._settings.challenge_token_prefix)}\d+_[A-Za-z0-9]+$"
        )
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def store(self) -> ChallengeStore:
        return self._store

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    # ── Issue ─────────────────────────────────────────────────────────────────

    async def generate(self) -> Challenge:
        """Create and store a new challenge.

        Raises:
            ServiceUnavailableError: if no unique token could be stored.
        """
        answer = generate_challenge_text(self._settings.challenge_length)
        for _ in range(_MAX_ISSUE_ATTEMPTS):
            issued_at = self._clock()
            token = generate_challenge_token(
                issued_at, self._settings.challenge_token_prefix
            )
            record = ChallengeRecord(token=token, answer=answer, issued_at=issued_at)
            if await self._store.add(record):
                log.info(
                    "challenge_issued",
                    backend=self._store.backend,
                    issued_at=issued_at,
                )
                return Challenge(
                    challenge=f"Type exactly: {answer}",
                    display_text=answer,
                    token=token,
                )
            log.warning("challenge_token_collision", backend=self._store.backend)

        raise ServiceUnavailableError("Failed to generate challenge")

    # ── Verify ────────────────────────────────────────────────────────────────

    async def verify(self, token: Optional[str], answer: Optional[str] = None) -> bool:
        return (await self.check(token, answer)).valid

    async def check(
        self, token: Optional[str], answer: Optional[str] = None
    ) -> VerificationResult:
        """Verify *token* (and *answer* when given), consuming it on success."""
        try:
            return await self._check(token, answer)
        except Exception as e:
            log.error(
                "challenge_verification_error",
                backend=self._store.backend,
                error=str(e),
                error_type=type(e).__name__,
            )
            return VerificationResult(
                valid=False, failure=ChallengeFailure.INTERNAL_ERROR
            )

    async def _check(
        self, token: Optional[str], answer: Optional[str]
    ) -> VerificationResult:
        if not token:
            return self._reject(ChallengeFailure.MISSING_TOKEN)

        if (
            len(token) < self._settings.challenge_min_token_length
            or not self._token_pattern.match(token)
        ):
            return self._reject(ChallengeFailure.MALFORMED_TOKEN, length=len(token))

        if await self._store.is_used(token):
            return self._reject(ChallengeFailure.TOKEN_REPLAYED)

        record = await self._store.get(token)
        if record is None:
            return self._reject(ChallengeFailure.UNKNOWN_OR_CONSUMED_TOKEN)

        issued_at = parse_token_timestamp(token)
        if issued_at is None:
            return self._reject(ChallengeFailure.MALFORMED_TOKEN)

        now = self._clock()
        if now - issued_at > self._settings.validity_ms:
            return self._reject(ChallengeFailure.TOKEN_EXPIRED, age_ms=now - issued_at)

        if issued_at > now + self._settings.clock_skew_ms:
            return self._reject(
                ChallengeFailure.TOKEN_FROM_FUTURE, ahead_ms=issued_at - now
            )

        if answer is not None and not _answers_match(answer, record.answer):
            return self._reject(ChallengeFailure.ANSWER_MISMATCH)

        if not await self._store.consume(token, now):
            # Another request consumed the token between get() and consume()
            return self._reject(ChallengeFailure.TOKEN_REPLAYED, raced=True)

        log.info(
            "challenge_verified",
            backend=self._store.backend,
            age_ms=now - issued_at,
            checked_response=answer is not None,
        )
        return _ACCEPTED

    def _reject(self, failure: ChallengeFailure, **context) -> VerificationResult:
        log.warning(
            "challenge_rejected",
            reason=failure.value,
            backend=self._store.backend,
            **context,
        )
        return VerificationResult(valid=False, failure=failure)

    # ── Sweep ─────────────────────────────────────────────────────────────────

    async def sweep(self) -> int:
        """Delete records and used-token entries older than the validity window."""
        cutoff = self._clock() - self._settings.validity_ms
        try:
            removed = await self._store.purge(cutoff)
        except Exception as e:
            log.error(
                "challenge_sweep_failed",
                backend=self._store.backend,
                error=str(e),
                error_type=type(e).__name__,
            )
            return 0
        if removed:
            log.info("challenge_sweep_completed", removed=removed)
        return removed

    async def live_count(self) -> int:
        return await self._store.count()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop (idempotent)."""
        if self.is_sweeping:
            return
        self._sweeper = asyncio.create_task(
            self._sweep_forever(), name="challenge-sweeper"
        )
        log.info(
            "challenge_sweeper_started",
            interval_seconds=self._settings.challenge_sweep_interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        log.info("challenge_sweeper_stopped")

    async def _sweep_forever(self) -> None:
        interval = self._settings.challenge_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            await self.sweep()


def _answers_match(submitted: str, expected: str) -> bool:
    return secrets.compare_digest(
        submitted.strip().encode("utf-8"), expected.encode("utf-8")
    )
