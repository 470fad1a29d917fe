"""FastAPI dependencies for the course catalog.

Service instances are registered by ``src.main`` during startup.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.courses.service import CourseService, LessonService


# ==============================================================================
# Service Getters (set by main.py)
# ==============================================================================

_course_service_getter: Callable[[], CourseService] | None = None
_lesson_service_getter: Callable[[], LessonService] | None = None


def set_course_service_getter(getter: Callable[[], CourseService]) -> None:
    """Set the course service getter function."""
    global _course_service_getter
    _course_service_getter = getter


def set_lesson_service_getter(getter: Callable[[], LessonService]) -> None:
    """Set the lesson service getter function."""
    global _lesson_service_getter
    _lesson_service_getter = getter


def get_course_service() -> CourseService:
    if _course_service_getter is None:
        msg = "CourseService not configured"
        raise RuntimeError(msg)
    return _course_service_getter()


def get_lesson_service() -> LessonService:
    if _lesson_service_getter is None:
        msg = "LessonService not configured"
        raise RuntimeError(msg)
    return _lesson_service_getter()


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]
LessonServiceDep = Annotated[LessonService, Depends(get_lesson_service)]
