"""
Response DTOs for human-verification endpoints.

ChallengeResponse        GET /challenge  (200)
VerifyChallengeResponse  POST /verify-challenge  (200 / 400)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChallengeResponse(BaseModel):
    """Response body for GET /challenge.

    The expected answer is never part of this payload.
    """

    model_config = ConfigDict(populate_by_name=True)

    challenge: str
    token: str
    display_text: str = Field(alias="displayText")


class VerifyChallengeResponse(BaseModel):
    """Response body for POST /verify-challenge."""

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    # ChallengeFailure value; absent on success
    message: Optional[str] = None
