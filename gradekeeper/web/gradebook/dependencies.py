"""FastAPI dependency providers for the gradebook web application."""

from __future__ import annotations

from gradekeeper.core import di
from gradekeeper.grading import GradingWorkflow


@di.inject
def get_workflow(
    workflow: GradingWorkflow = di.Provide["grading.workflow"],
) -> GradingWorkflow:
    """Get the grading workflow from DI container."""
    return workflow
