"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system.

require_human_verification is the gate that registration, login and
password-reset endpoints put in front of their own side effects.
"""

from __future__ import annotations

from fastapi import Depends, Request

from errors import SecurityVerificationError
from schemas.dto.requests.challenge import ChallengeProtectedRequest
from services.challenge_service import ChallengeService
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


async def _read_challenge_fields(request: Request) -> ChallengeProtectedRequest:
    # The route reads its own body model; the cached body is parsed again here
    try:
        return ChallengeProtectedRequest.model_validate(await request.json())
    except ValueError:
        # Unparseable or non-object bodies carry no token
        return ChallengeProtectedRequest()


def get_challenge_service(request: Request) -> ChallengeService:
    """Return the ChallengeService owned by the running app."""
    return request.app.state.challenge_service


async def require_human_verification(
    request: Request,
    service: ChallengeService = Depends(get_challenge_service),
) -> None:
    """Reject the enclosing request unless its challenge token verifies.

    The specific failure is logged; the client only sees a generic
    ``Security verification failed`` 400.
    """
    body = await _read_challenge_fields(request)
    # A missing answer must not turn into a token-only check
    result = await service.check(body.recaptcha_token, body.recaptcha_answer or "")
    if result.valid:
        return
    log.warning(
        "security_verification_failed",
        path=request.url.path,
        reason=result.failure.value if result.failure else None,
        ip_hash=hash_ip(get_client_ip(request)),
    )
    raise SecurityVerificationError()
