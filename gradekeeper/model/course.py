import datetime
import enum

from .base import BaseModel, WithTimestamps
from .id import ContentItemID, CourseID, ModuleID, QuestionID, RubricID, UserID


class CourseStatus(enum.Enum):
    Draft = "draft"
    Published = "published"
    Finalized = "finalized"
    Archived = "archived"

    @property
    def is_locked(self) -> bool:
        """Grades of a finalized or archived course can no longer change."""
        return self in (CourseStatus.Finalized, CourseStatus.Archived)


class ContentType(enum.Enum):
    Lesson = "lesson"
    Quiz = "quiz"
    Assignment = "assignment"
    Discussion = "discussion"
    Resource = "resource"
    Examination = "examination"

    @property
    def is_gradable(self) -> bool:
        return self in GradableContentTypes


GradableContentTypes = frozenset({ContentType.Quiz, ContentType.Assignment, ContentType.Examination})


class ContentItem(BaseModel):
    content_item_id: ContentItemID
    course_id: CourseID
    module_id: ModuleID
    title: str
    type: ContentType
    position: int = 0

    rubric_id: RubricID | None = None
    question_ids: list[QuestionID] = []
    attempts_limit: int | None = None
    due_date: datetime.datetime | None = None


class Module(BaseModel):
    module_id: ModuleID
    course_id: CourseID
    title: str
    position: int = 0
    items: list[ContentItem] = []


class Course(WithTimestamps):
    course_id: CourseID
    instructor_id: UserID
    title: str
    status: CourseStatus = CourseStatus.Draft


class CourseWithModules(Course):
    modules: list[Module] = []

    @property
    def gradable_items(self) -> list[ContentItem]:
        """Quizzes, assignments and examinations in module order."""
        return [item for module in self.modules for item in module.items if item.type.is_gradable]
