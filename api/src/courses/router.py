"""Course catalog API endpoints.

Provides routes for:
- Courses: public listing and detail, admin CRUD
- Lessons: listing, admin CRUD and reordering

Domain errors propagate to the application-wide ``AppError`` handler.
"""

from uuid import UUID

from fastapi import APIRouter, status

from src.auth.dependencies import AdminUser, OptionalUser
from src.courses.dependencies import CourseServiceDep, LessonServiceDep
from src.courses.models import ContentStatus
from src.courses.schemas import (
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    LessonListResponse,
    LessonResponse,
    ReorderLessonsRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
)


router_courses = APIRouter(prefix="/v1/courses", tags=["courses"])


# ==============================================================================
# Courses
# ==============================================================================


@router_courses.get(
    "",
    response_model=CourseListResponse,
    summary="List courses",
)
async def list_courses(
    course_service: CourseServiceDep,
    user: OptionalUser,
    status_filter: ContentStatus | None = None,
) -> CourseListResponse:
    """List courses, newest first.

    Anonymous users and students only see published courses; admins see
    everything and may filter by status.
    """
    items = await course_service.list_courses(user, status=status_filter)
    return CourseListResponse(items=items, total=len(items))


@router_courses.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Get course with lessons",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> CourseDetailResponse:
    return await course_service.get_course_detail(course_id, user)


@router_courses.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: AdminUser,
) -> CourseResponse:
    """Create a course (ADMIN only). The caller becomes the instructor."""
    course = await course_service.create_course(user, data)
    return CourseResponse.from_entity(course)


@router_courses.patch(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course",
)
async def update_course(
    course_id: UUID,
    data: UpdateCourseRequest,
    course_service: CourseServiceDep,
    user: AdminUser,
) -> CourseResponse:
    course = await course_service.update_course(user, course_id, data)
    return CourseResponse.from_entity(course)


@router_courses.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course",
)
async def delete_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: AdminUser,
) -> None:
    """Delete a course with its lessons, enrollments and progress."""
    await course_service.delete_course(user, course_id)


# ==============================================================================
# Lessons
# ==============================================================================


@router_courses.get(
    "/{course_id}/lessons",
    response_model=LessonListResponse,
    summary="List course lessons",
)
async def list_lessons(
    course_id: UUID,
    lesson_service: LessonServiceDep,
    user: OptionalUser,
) -> LessonListResponse:
    lessons = await lesson_service.list_lessons(course_id, user)
    return LessonListResponse(
        items=[LessonResponse.from_entity(lesson) for lesson in lessons],
        total=len(lessons),
    )


@router_courses.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create lesson",
)
async def create_lesson(
    course_id: UUID,
    data: CreateLessonRequest,
    lesson_service: LessonServiceDep,
    user: AdminUser,
) -> LessonResponse:
    lesson = await lesson_service.create_lesson(user, course_id, data)
    return LessonResponse.from_entity(lesson)


@router_courses.put(
    "/{course_id}/lessons/reorder",
    response_model=LessonListResponse,
    summary="Reorder lessons",
)
async def reorder_lessons(
    course_id: UUID,
    data: ReorderLessonsRequest,
    lesson_service: LessonServiceDep,
    user: AdminUser,
) -> LessonListResponse:
    """Assign each lesson its index in ``lesson_ids`` as the new order."""
    lessons = await lesson_service.reorder_lessons(user, course_id, data.lesson_ids)
    return LessonListResponse(
        items=[LessonResponse.from_entity(lesson) for lesson in lessons],
        total=len(lessons),
    )


@router_courses.patch(
    "/{course_id}/lessons/{lesson_id}",
    response_model=LessonResponse,
    summary="Update lesson",
)
async def update_lesson(
    course_id: UUID,
    lesson_id: UUID,
    data: UpdateLessonRequest,
    lesson_service: LessonServiceDep,
    user: AdminUser,
) -> LessonResponse:
    lesson = await lesson_service.update_lesson(user, course_id, lesson_id, data)
    return LessonResponse.from_entity(lesson)


@router_courses.delete(
    "/{course_id}/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete lesson",
)
async def delete_lesson(
    course_id: UUID,
    lesson_id: UUID,
    lesson_service: LessonServiceDep,
    user: AdminUser,
) -> None:
    """Delete a lesson and all progress recorded against it."""
    await lesson_service.delete_lesson(user, course_id, lesson_id)
