"""
Request DTOs for human-verification endpoints.

VerifyChallengeRequest     POST /verify-challenge
ChallengeProtectedRequest  base for form bodies guarded by a challenge
                             (registration, login, password reset)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VerifyChallengeRequest(BaseModel):
    """Request body for POST /verify-challenge.

    Both fields are optional at the schema level so that a missing token is
    reported as ``MissingToken`` by the challenge service rather than as a
    422 from request validation.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    answer: Optional[str] = None


class ChallengeProtectedRequest(BaseModel):
    """Fields a form submission carries to pass the human-verification gate.

    Accepts the frontend's camelCase keys (``recaptchaToken``,
    ``recaptchaAnswer``) as well as the snake_case field names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    recaptcha_token: Optional[str] = Field(default=None, alias="recaptchaToken")
    recaptcha_answer: Optional[str] = Field(default=None, alias="recaptchaAnswer")
