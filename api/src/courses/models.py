"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: Main course table
- Lessons: Lessons owned by a course, ordered by ``lesson_order``

Lessons are looked up per course through a secondary index; the catalog is
small enough that ordering happens client-side.
"""

import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class ContentStatus(str, Enum):
    """Course publication status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    status TEXT,
    instructor_id UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# "order" is a reserved word in CQL
LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    content TEXT,
    video_url TEXT,
    lesson_order INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

LESSON_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS lessons_course_id_idx ON {keyspace}.lessons (course_id)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    LESSON_TABLE_CQL,
    LESSON_COURSE_INDEX_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


_YOUTUBE_PATTERNS = (
    re.compile(
        r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"
    ),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)

_VIMEO_PATTERNS = (
    re.compile(r"vimeo\.com/(\d+)"),
    re.compile(r"player\.vimeo\.com/video/(\d+)"),
)


def extract_video_id(url: str | None) -> tuple[str | None, str | None]:
    """Return ``(platform, video_id)`` for YouTube and Vimeo URLs.

    Examples:
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        ('youtube', 'dQw4w9WgXcQ')
        >>> extract_video_id("https://example.com/video.mp4")
        (None, None)
    """
    if not url:
        return None, None

    for pattern in _YOUTUBE_PATTERNS:
        if match := pattern.search(url):
            return "youtube", match.group(1)

    for pattern in _VIMEO_PATTERNS:
        if match := pattern.search(url):
            return "vimeo", match.group(1)

    return None, None


def get_embed_url(url: str | None) -> str | None:
    """Build an embeddable player URL, or None for unsupported hosts."""
    platform, video_id = extract_video_id(url)
    if platform == "youtube":
        return f"https://www.youtube.com/embed/{video_id}"
    if platform == "vimeo":
        return f"https://player.vimeo.com/video/{video_id}"
    return None


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        thumbnail_url: Cover image URL
        status: Publication status (draft, published, archived)
        instructor_id: User who created the course
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        thumbnail_url: str | None = None,
        status: str = ContentStatus.DRAFT.value,
        instructor_id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.status = status
        self.instructor_id = instructor_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED.value

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            status=row.status or ContentStatus.DRAFT.value,
            instructor_id=row.instructor_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "status": self.status,
            "instructor_id": self.instructor_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.status})>"


class Lesson:
    """Lesson entity, owned by exactly one course.

    ``order`` is a sort key; gaps and duplicates are tolerated.
    """

    def __init__(
        self,
        course_id: UUID,
        id: UUID | None = None,
        title: str = "",
        content: str | None = None,
        video_url: str | None = None,
        order: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title.strip()
        self.content = content
        self.video_url = video_url
        self.order = order
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def embed_url(self) -> str | None:
        return get_embed_url(self.video_url)

    @property
    def sort_key(self) -> tuple[int, datetime]:
        return (self.order, self.created_at)

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            content=row.content,
            video_url=row.video_url,
            order=row.lesson_order if row.lesson_order is not None else 0,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "content": self.content,
            "video_url": self.video_url,
            "embed_url": self.embed_url,
            "order": self.order,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.title} (order={self.order})>"
