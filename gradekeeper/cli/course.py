"""CLI commands for course gradebooks."""

from __future__ import annotations

from sqlalchemy.orm import Session

import gradekeeper.lib.cli as click
from gradekeeper.core import di
from gradekeeper.grading import GradingError, GradingWorkflow
from gradekeeper.grading import gradebook
from gradekeeper.model import CourseID, UserID


@click.group("course")
def course():
    """Inspect and finalize course gradebooks."""
    ...


@course.command("summary")
@click.argument("instructor_id")
@di.inject
def course_summary(
    instructor_id: str,
    session: Session = di.Manage["storage.persistent.session"],
) -> None:
    """Print submitted and graded counts for each gradable item an instructor teaches."""
    with session.begin():
        summaries = gradebook.get_grading_summary(UserID(instructor_id), session=session)

    for summary in summaries:
        locked = " (finalized)" if summary.is_locked else ""
        click.echo(click.style(f"{summary.course_title}{locked}", bold=True) + f"  {summary.course_id}")
        for item in summary.items:
            click.echo(
                f"  {item.title:<40} {item.type.value:<12} "
                f"submitted {item.submitted_count}/{item.total_enrolled}  graded {item.graded_count}"
            )


@course.command("finalize")
@click.argument("course_id")
@click.option("--yes", "-y", is_flag=True, default=False, help="do not ask for confirmation")
@di.inject
def course_finalize(
    course_id: str,
    yes: bool,
    workflow: GradingWorkflow = di.Provide["grading.workflow"],
    session: Session = di.Manage["storage.persistent.session"],
) -> None:
    """Lock a course gradebook. This cannot be undone."""
    if not yes:
        click.confirm(f"Finalize {course_id}? Grades can no longer change afterwards", abort=True)
    try:
        finalized = workflow.finalize_course(course_id=CourseID(course_id), session=session)
    except GradingError as e:
        raise click.ClickException(f"{e.code}: {e.message}") from e
    click.echo(f"Finalized {finalized.title} ({finalized.course_id})")
