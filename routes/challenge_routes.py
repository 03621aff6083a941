"""
Human-verification endpoints.

GET  /challenge         Issue a challenge (the answer never leaves the server)
POST /verify-challenge  Verify and consume a token/answer pair
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dependencies import get_challenge_service
from schemas.dto.requests.challenge import VerifyChallengeRequest
from schemas.dto.responses.challenge import ChallengeResponse, VerifyChallengeResponse
from schemas.dto.responses.common import ErrorResponse
from services.challenge_service import ChallengeService
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

router = APIRouter(tags=["challenge"])


@router.get(
    "/challenge",
    response_model=ChallengeResponse,
    responses={503: {"model": ErrorResponse}},
)
async def get_challenge(
    request: Request,
    service: ChallengeService = Depends(get_challenge_service),
) -> JSONResponse:
    challenge = await service.generate()
    log.debug("challenge_served", ip_hash=hash_ip(get_client_ip(request)))
    body = ChallengeResponse(
        challenge=challenge.challenge,
        token=challenge.token,
        display_text=challenge.display_text,
    )
    return JSONResponse(
        status_code=200,
        content=body.model_dump(by_alias=True),
        headers={"Cache-Control": "no-store"},
    )


@router.post(
    "/verify-challenge",
    response_model=VerifyChallengeResponse,
    response_model_exclude_none=True,
    responses={400: {"model": VerifyChallengeResponse}},
)
async def verify_challenge(
    body: VerifyChallengeRequest,
    request: Request,
    service: ChallengeService = Depends(get_challenge_service),
) -> JSONResponse:
    result = await service.check(body.token, body.answer or "")
    if result.valid:
        return JSONResponse(
            status_code=200,
            content=VerifyChallengeResponse(valid=True).model_dump(exclude_none=True),
        )

    log.info(
        "challenge_verify_endpoint_rejected",
        reason=result.failure.value if result.failure else None,
        ip_hash=hash_ip(get_client_ip(request)),
    )
    content = VerifyChallengeResponse(
        valid=False,
        message=result.failure.value if result.failure else None,
    )
    return JSONResponse(status_code=400, content=content.model_dump(exclude_none=True))
