"""Pydantic schemas for the course hierarchy endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from coursehub.schemas.common import CaptchaToken, LongText, ShortText, Text, derive_course_code


class CourseCreate(BaseModel):
    """Body of ``POST /courses``."""

    model_config = ConfigDict(populate_by_name=True)

    name: Text
    faculty: ShortText
    subject: ShortText
    number: ShortText
    credits: ShortText
    captcha_token: CaptchaToken

    @property
    def code(self) -> str:
        return derive_course_code(self.faculty, self.subject, self.number, self.credits)


class SectionCreate(BaseModel):
    """Body of ``POST /courses/{code}/sections``."""

    model_config = ConfigDict(populate_by_name=True)

    name: Text
    captcha_token: CaptchaToken


class LinkCreate(BaseModel):
    """Body of ``POST /courses/{code}/sections/{section}/link``.

    ``code`` is the one-time verification code mailed to ``username``; it
    stands in for the captcha on this endpoint.
    """

    type: ShortText
    url: LongText
    terms: bool
    username: Text
    code: ShortText

    @field_validator("terms")
    @classmethod
    def _terms_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError("terms must be accepted")
        return value


class LinkClick(BaseModel):
    """Body of ``POST /courses/{code}/sections/{section}/link/click``."""

    url: LongText


class CourseCreated(BaseModel):
    code: str
    name: str
    faculty: str
    subject: str
    number: str
    credits: str


class SectionCreated(BaseModel):
    course_code: str
    name: str


class LinkCreated(BaseModel):
    course_code: str
    section: str
    type: str
    url: str


class ClickRecorded(BaseModel):
    url: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CourseSummary(_CamelModel):
    """Row of ``GET /courses``."""

    code: str
    name: str
    faculty: str
    subject: str
    number: str
    credits: str


class LinkView(_CamelModel):
    id: str = Field(alias="_id")
    type: str
    url: str
    updated_at: datetime | None = None


class SectionView(_CamelModel):
    name: str
    links: list[LinkView] = Field(default_factory=list)


class CourseDetail(CourseSummary):
    """Body of ``GET /courses/{code}``."""

    sections: list[SectionView] = Field(default_factory=list)


class GlobalStats(_CamelModel):
    link_count: int
    course_count: int
    click_count: int


class LinkClicks(_CamelModel):
    section: str
    type: str
    url: str
    clicks: int


class CourseStats(_CamelModel):
    code: str
    click_count: int
    links: list[LinkClicks]
