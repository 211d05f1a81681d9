"""Tests for request schemas: required fields, trimming and normalization."""

import pytest
from pydantic import ValidationError

from coursehub.schemas.common import derive_course_code, normalize_course_code
from coursehub.schemas.courses import CourseCreate, CourseDetail, GlobalStats, LinkCreate, SectionCreate
from coursehub.schemas.reports import ReportCreate
from coursehub.schemas.verification import VerificationRequest


def _course_body(**overrides) -> dict:
    body = {
        "name": "Intro to Computing",
        "faculty": " eng ",
        "subject": "c s",
        "number": 1004,
        "credits": 3,
        "captchaToken": "token",
    }
    body.update(overrides)
    return body


def test_course_code_is_derived_and_normalized() -> None:
    course = CourseCreate.model_validate(_course_body())

    assert course.faculty == "eng"
    assert course.number == "1004"
    assert course.credits == "3"
    assert course.code == "ENGCS10043"


@pytest.mark.parametrize(
    ("credits", "expected"),
    [(3.0, "ENGCS10043"), ("3", "ENGCS10043"), (3.5, "ENGCS10043.5")],
)
def test_integral_float_credits_derive_same_code(credits, expected: str) -> None:
    course = CourseCreate.model_validate(_course_body(credits=credits, number=1004.0))

    assert course.number == "1004"
    assert course.code == expected


def test_derive_course_code_strips_all_whitespace() -> None:
    assert derive_course_code("Eng ", " Comp Sci", "10 04", "3\t") == "ENGCOMPSCI10043"


def test_path_codes_are_trimmed_and_uppercased() -> None:
    assert normalize_course_code("  engcs10043 ") == "ENGCS10043"


@pytest.mark.parametrize("field", ["name", "faculty", "subject", "number", "credits", "captchaToken"])
def test_course_fields_are_required(field: str) -> None:
    body = _course_body()
    del body[field]

    with pytest.raises(ValidationError):
        CourseCreate.model_validate(body)


def test_whitespace_only_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        CourseCreate.model_validate(_course_body(name="   "))


def test_captcha_accepted_under_either_name() -> None:
    body = {"name": "A", "captcha": "legacy-token"}

    assert SectionCreate.model_validate(body).captcha_token == "legacy-token"
    assert SectionCreate.model_validate({"name": "A", "captchaToken": "t"}).captcha_token == "t"


def test_section_name_keeps_case() -> None:
    assert SectionCreate.model_validate({"name": " Fall 2024 ", "captchaToken": "t"}).name == "Fall 2024"


def test_link_requires_accepted_terms() -> None:
    body = {"type": "discord", "url": "https://discord.gg/x", "terms": False, "username": "a@b.co", "code": "1"}

    with pytest.raises(ValidationError):
        LinkCreate.model_validate(body)

    body["terms"] = True
    assert LinkCreate.model_validate(body).terms is True


def test_link_code_may_be_numeric() -> None:
    link = LinkCreate.model_validate(
        {"type": "discord", "url": "https://discord.gg/x", "terms": True, "username": "a@b.co", "code": 123456}
    )

    assert link.code == "123456"


def test_link_has_no_captcha_field() -> None:
    assert "captcha_token" not in LinkCreate.model_fields


def test_verification_and_report_require_captcha() -> None:
    with pytest.raises(ValidationError):
        VerificationRequest.model_validate({"username": "a@b.co"})
    with pytest.raises(ValidationError):
        ReportCreate.model_validate({"link_id": "x", "reason": "spam"})


def test_read_models_serialize_camel_case() -> None:
    stats = GlobalStats(link_count=1, course_count=2, click_count=3)
    assert stats.model_dump(by_alias=True) == {"linkCount": 1, "courseCount": 2, "clickCount": 3}

    detail = CourseDetail.model_validate(
        {
            "code": "ENGCS10043",
            "name": "Intro",
            "faculty": "ENG",
            "subject": "CS",
            "number": "1004",
            "credits": "3",
            "sections": [{"name": "A", "links": [{"_id": "abc", "type": "discord", "url": "u", "clicks": 4}]}],
        }
    )
    link = detail.model_dump(by_alias=True)["sections"][0]["links"][0]
    assert link["_id"] == "abc"
    assert "clicks" not in link
