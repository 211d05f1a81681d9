from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from coursehub.api.dependencies import get_caller, get_services
from coursehub.core.rate_limit import (
    COURSE_CREATION,
    COURSE_DETAIL,
    COURSE_SEARCH,
    LINK_ACTIVITY,
    LINK_CLICK_BURST,
    LINK_CLICK_HOURLY,
    SECTION_CREATION,
    admit,
)
from coursehub.schemas.common import normalize_course_code
from coursehub.schemas.courses import (
    ClickRecorded,
    CourseCreate,
    CourseCreated,
    CourseDetail,
    CourseStats,
    CourseSummary,
    GlobalStats,
    LinkClick,
    LinkCreate,
    LinkCreated,
    SectionCreate,
    SectionCreated,
)
from coursehub.services.container import Services

router = APIRouter(tags=["Courses"])


@router.get(
    "/courses",
    response_model=list[CourseSummary],
    dependencies=[Depends(admit(COURSE_SEARCH))],
)
async def search_courses(
    q: str | None = Query(None, max_length=128, description="Matches course name or code"),
    limit: int = Query(0, ge=0, alias="l", description="Maximum number of results (0 for all)"),
    services: Services = Depends(get_services),
) -> list[dict]:
    return await services.catalog.search(q, limit)


@router.get("/stats", response_model=GlobalStats, dependencies=[Depends(admit(COURSE_SEARCH))])
async def global_stats(services: Services = Depends(get_services)) -> dict:
    return await services.catalog.global_stats()


@router.get(
    "/courses/{code}/stats",
    response_model=CourseStats,
    dependencies=[Depends(admit(LINK_ACTIVITY))],
)
async def course_stats(code: str, services: Services = Depends(get_services)) -> dict:
    return await services.catalog.course_stats(normalize_course_code(code))


@router.get("/courses/{code}", response_model=CourseDetail, dependencies=[Depends(admit(COURSE_DETAIL))])
async def course_detail(code: str, services: Services = Depends(get_services)) -> dict:
    return await services.catalog.course(normalize_course_code(code))


@router.post(
    "/courses",
    status_code=201,
    response_model=CourseCreated,
    dependencies=[Depends(admit(COURSE_CREATION))],
)
async def create_course(
    payload: CourseCreate,
    services: Services = Depends(get_services),
    caller: str = Depends(get_caller),
) -> CourseCreated:
    """Create a course. The code is derived from faculty, subject, number and credits."""
    code = await services.contributions.create_course(payload, caller)
    return CourseCreated(code=code, **payload.model_dump(exclude={"captcha_token"}))


@router.post(
    "/courses/{code}/sections",
    status_code=201,
    response_model=SectionCreated,
    dependencies=[Depends(admit(SECTION_CREATION))],
)
async def create_section(
    code: str,
    payload: SectionCreate,
    services: Services = Depends(get_services),
    caller: str = Depends(get_caller),
) -> SectionCreated:
    course_code = normalize_course_code(code)
    await services.contributions.create_section(course_code, payload, caller)
    return SectionCreated(course_code=course_code, name=payload.name)


@router.post(
    "/courses/{code}/sections/{section}/link",
    status_code=201,
    response_model=LinkCreated,
    dependencies=[Depends(admit(LINK_ACTIVITY))],
)
async def create_link(
    code: str,
    section: str,
    payload: LinkCreate,
    services: Services = Depends(get_services),
) -> LinkCreated:
    """Add a link to a section.

    Requires the one-time code mailed by ``POST /verify/create``; the code is
    consumed by this call.
    """
    course_code = normalize_course_code(code)
    await services.contributions.create_link(course_code, section, payload)
    return LinkCreated(course_code=course_code, section=section, type=payload.type, url=payload.url)


@router.post(
    "/courses/{code}/sections/{section}/link/click",
    status_code=201,
    response_model=ClickRecorded,
    dependencies=[Depends(admit(LINK_ACTIVITY, LINK_CLICK_BURST, LINK_CLICK_HOURLY))],
)
async def record_click(
    code: str,
    section: str,
    payload: LinkClick,
    services: Services = Depends(get_services),
) -> ClickRecorded:
    """Count a click. Answers 201 whether or not the link exists."""
    await services.contributions.record_click(normalize_course_code(code), section, payload.url)
    return ClickRecorded(url=payload.url)
