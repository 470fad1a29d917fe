"""Enrollment and progress API endpoints.

Provides routes for:
- Enrollment creation, listing, detail and cancellation
- Lesson completion toggles
- Progress summaries
"""

from uuid import UUID

from fastapi import APIRouter, Response, status

from src.auth.dependencies import AdminUser, CurrentUser

from .dependencies import ProgressServiceDep
from .schemas import (
    AdminEnrollmentListResponse,
    EnrollmentDetailResponse,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
    LessonProgressResponse,
    ProgressSummaryResponse,
    SetLessonProgressRequest,
    SetLessonProgressResponse,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])
enrollments_router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


# ==============================================================================
# Enrollment Endpoints
# ==============================================================================


@enrollments_router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    data: EnrollRequest,
    response: Response,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Enroll in a published course.

    Returns 201 for a new enrollment and 200 when a dropped enrollment is
    reactivated or the course was already completed.
    """
    enrollment, created = await progress_service.create_enrollment(
        user, data.course_id
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return EnrollmentResponse.from_entity(enrollment)


@enrollments_router.get(
    "",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    progress_service: ProgressServiceDep,
    user: CurrentUser,
    include_dropped: bool = True,
) -> EnrollmentListResponse:
    items = await progress_service.list_user_enrollments(
        user, include_dropped=include_dropped
    )
    return EnrollmentListResponse(items=items, total=len(items))


@enrollments_router.get(
    "/admin",
    response_model=AdminEnrollmentListResponse,
    summary="List all enrollments (admin)",
)
async def list_all_enrollments(
    progress_service: ProgressServiceDep,
    user: AdminUser,
) -> AdminEnrollmentListResponse:
    return await progress_service.list_all_enrollments(user)


@enrollments_router.get(
    "/{enrollment_id}",
    response_model=EnrollmentDetailResponse,
    summary="Get enrollment detail",
)
async def get_enrollment(
    enrollment_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentDetailResponse:
    return await progress_service.get_enrollment_detail(user, enrollment_id)


@enrollments_router.delete(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Cancel enrollment",
)
async def cancel_enrollment(
    enrollment_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Drop an enrollment. Progress is kept and resumes on re-enrollment."""
    enrollment = await progress_service.cancel_enrollment(user, enrollment_id)
    return EnrollmentResponse.from_entity(enrollment)


# ==============================================================================
# Progress Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=SetLessonProgressResponse,
    summary="Mark lesson complete or incomplete",
)
async def set_lesson_progress(
    data: SetLessonProgressRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> SetLessonProgressResponse:
    progress, course_completed = await progress_service.set_lesson_progress(
        user, data.lesson_id, data.completed
    )
    return SetLessonProgressResponse(
        progress=LessonProgressResponse.from_entity(progress),
        course_completed=course_completed,
    )


@router.get(
    "",
    response_model=ProgressSummaryResponse,
    summary="Get course progress",
)
async def get_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressSummaryResponse:
    """Per-lesson completion map and totals for the caller's enrollment."""
    return await progress_service.get_progress_summary(user, course_id)
