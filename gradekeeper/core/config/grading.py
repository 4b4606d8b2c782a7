from .base import BaseSettings


class GradingSettings(BaseSettings):
    """Tunables of the grading workflow."""

    # history reason recorded when a quiz is scored automatically
    auto_grade_reason: str = "Auto-graded"
    # modifier recorded on automatically scored history entries
    auto_grade_modifier: str = "Auto-grader"
    # history reason used when an instructor grades without giving one
    manual_grade_reason: str = "Graded by instructor"
    # append a history entry (old == new score) when a dispute is rejected
    record_dispute_rejections: bool = False
    notification_stream_prefix: str = "gradekeeper:notifications"
