"""Pydantic schemas for link reports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from coursehub.schemas.common import CaptchaToken, LongText, Text


class ReportCreate(BaseModel):
    """Body of ``POST /report``."""

    model_config = ConfigDict(populate_by_name=True)

    link_id: Text
    reason: LongText
    captcha_token: CaptchaToken


class ReportCreated(BaseModel):
    link_id: str
    reason: str
