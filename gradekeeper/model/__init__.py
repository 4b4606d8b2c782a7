__all__ = [
    # Base
    "BaseModel",
    "FrozenModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "UserID",
    "CourseID",
    "ModuleID",
    "ContentItemID",
    "QuestionID",
    "RubricID",
    "SubmissionID",
    "GradeID",
    "GradeHistoryEntryID",
    "DisputeID",
    # Users
    "User",
    "UserRef",
    "UserRole",
    # Courses
    "Course",
    "CourseStatus",
    "CourseWithModules",
    "Module",
    "ContentItem",
    "ContentType",
    "GradableContentTypes",
    # Questions
    "Question",
    "QuestionAdapter",
    "QuestionType",
    "AnswerValue",
    "MultipleChoiceQuestion",
    "TrueFalseQuestion",
    "ShortAnswerQuestion",
    "MultipleSelectQuestion",
    "FillBlankQuestion",
    # Rubrics
    "Rubric",
    "RubricLevel",
    "RubricCriterion",
    "RubricFeedbackEntry",
    "RubricScore",
    # Submissions
    "Submission",
    "SubmissionAdapter",
    "SubmissionType",
    "SubmittedFile",
    "QuizSubmission",
    "AssignmentSubmission",
    "SubmissionIntake",
    "QuizIntake",
    "AssignmentIntake",
    # Grades
    "AppliedOperation",
    "Grade",
    "GradeStatus",
    "GradeHistoryEntry",
    "MinScore",
    "MaxScore",
    # Disputes
    "GradeDispute",
    "DisputeStatus",
    "DisputeDecision",
    # Gradebook
    "ContentItemRef",
    "GradeMatrix",
    "GradeMatrixRow",
    "GradableItemSummary",
    "CourseGradingSummary",
    "StudentSubmissionDetails",
    "SubmissionDetails",
    "ItemQueue",
    "StudentGradeLine",
    # Notifications
    "Notification",
    "NotificationType",
]

from .base import BaseModel, FrozenModel, WithCtime, WithMtime, WithTimestamps
from .course import ContentItem, ContentType, Course, CourseStatus, CourseWithModules, GradableContentTypes, Module
from .dispute import DisputeDecision, DisputeStatus, GradeDispute
from .enum import DeploymentEnvironment
from .grade import AppliedOperation, Grade, GradeHistoryEntry, GradeStatus, MaxScore, MinScore
from .gradebook import ContentItemRef, CourseGradingSummary, GradableItemSummary, GradeMatrix, GradeMatrixRow, \
    ItemQueue, StudentGradeLine, StudentSubmissionDetails, SubmissionDetails
from .id import ContentItemID, CourseID, DisputeID, GradeHistoryEntryID, GradeID, ModuleID, QuestionID, RubricID, \
    SubmissionID, UserID
from .notification import Notification, NotificationType
from .question import AnswerValue, FillBlankQuestion, MultipleChoiceQuestion, MultipleSelectQuestion, Question, \
    QuestionAdapter, QuestionType, ShortAnswerQuestion, TrueFalseQuestion
from .rubric import Rubric, RubricCriterion, RubricFeedbackEntry, RubricLevel, RubricScore
from .submission import AssignmentIntake, AssignmentSubmission, QuizIntake, QuizSubmission, Submission, \
    SubmissionAdapter, SubmissionIntake, SubmissionType, SubmittedFile
from .user import User, UserRef, UserRole
