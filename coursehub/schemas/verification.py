"""Pydantic schemas for verification-code issuance."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from coursehub.schemas.common import CaptchaToken, Text


class VerificationRequest(BaseModel):
    """Body of ``POST /verify/create``. ``username`` is an email address."""

    model_config = ConfigDict(populate_by_name=True)

    username: Text
    captcha_token: CaptchaToken


class VerificationRequested(BaseModel):
    username: str
