"""Tests for submission, grade and rubric API endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from gradekeeper.model import ContentItemID, NotificationType, RubricID, SubmissionID, User
from gradekeeper.notify import InMemoryNotificationChannel

if t.TYPE_CHECKING:
    from tests.conftest import Classroom


def score_body(classroom: Classroom, score: t.Any, **extra: t.Any) -> dict[str, t.Any]:
    return {
        "course_id": str(classroom.course.course_id),
        "score": score,
        "modifier_name": "Ada Instructor",
        **extra,
    }


def grade_url(student: User, item_id: ContentItemID) -> str:
    return f"/api/grades/{student.user_id}/{item_id}"


class TestRecordSubmission(object):
    """Tests for POST /api/submissions."""

    def test_assignment_waits_for_review(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(
            "/api/submissions",
            json={
                "type": "assignment",
                "student_id": str(classroom.student.user_id),
                "course_id": str(classroom.course.course_id),
                "content_item_id": str(classroom.assignment.content_item_id),
                "text_content": "The sample mean converges...",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["submission"]["type"] == "assignment"
        assert body["grade"]["status"] == "pending review"
        assert body["grade"]["score"] is None
        assert body["grade"]["submission_id"] == body["submission"]["submission_id"]

    def test_quiz_is_graded_on_receipt(self, client: TestClient, classroom: Classroom) -> None:
        tf, mc, _ = classroom.questions
        response = client.post(
            "/api/submissions",
            json={
                "type": "quiz",
                "student_id": str(classroom.student.user_id),
                "course_id": str(classroom.course.course_id),
                "content_item_id": str(classroom.quiz.content_item_id),
                "answers": {str(tf.question_id): True, str(mc.question_id): 1},
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["submission"]["attempt_number"] == 1
        assert (body["grade"]["status"], body["grade"]["score"]) == ("graded", 100)
        assert len(body["grade"]["history"]) == 1

    def test_not_enrolled(
        self,
        client: TestClient,
        classroom: Classroom,
        user_factory: t.Callable[..., User],
    ) -> None:
        outsider = user_factory(name="Outside Student")

        response = client.post(
            "/api/submissions",
            json={
                "type": "assignment",
                "student_id": str(outsider.user_id),
                "course_id": str(classroom.course.course_id),
                "content_item_id": str(classroom.assignment.content_item_id),
                "text_content": "Let me in",
            },
        )

        assert response.status_code == 403
        assert response.json()["error"] == "not_enrolled"

    def test_assignment_needs_content(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(
            "/api/submissions",
            json={
                "type": "assignment",
                "student_id": str(classroom.student.user_id),
                "course_id": str(classroom.course.course_id),
                "content_item_id": str(classroom.assignment.content_item_id),
            },
        )

        assert response.status_code == 422


class TestGrades(object):
    """Tests for GET and PUT /api/grades/{student_id}/{content_item_id}."""

    def test_upsert_and_get(
        self,
        client: TestClient,
        classroom: Classroom,
        notifications: InMemoryNotificationChannel,
    ) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)

        first = client.put(url, json=score_body(classroom, 70))
        second = client.put(url, json=score_body(classroom, 78, reason="Regraded question 4", feedback="Better"))
        response = client.get(url)

        assert (first.status_code, second.status_code, response.status_code) == (200, 200, 200)
        grade = response.json()
        assert (grade["score"], grade["status"], grade["feedback"]) == (78, "graded", "Better")
        assert [(h["old_score"], h["new_score"]) for h in grade["history"]] == [(None, 70), (70, 78)]
        assert grade["history"][1]["reason"] == "Regraded question 4"
        assert len(notifications.of_type(NotificationType.GradePosted)) == 2

    def test_missing_grade(self, client: TestClient, classroom: Classroom) -> None:
        response = client.get(grade_url(classroom.student, classroom.exam.content_item_id))

        assert response.status_code == 404

    def test_invalid_score(self, client: TestClient, classroom: Classroom) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)

        response = client.put(url, json=score_body(classroom, 101))

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_score"
        assert client.get(url).status_code == 404

    def test_fractional_score(self, client: TestClient, classroom: Classroom) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)

        response = client.put(url, json=score_body(classroom, 82.5))

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_score"
        assert client.get(url).status_code == 404

    def test_unknown_content_item(self, client: TestClient, classroom: Classroom) -> None:
        response = client.put(grade_url(classroom.student, ContentItemID()), json=score_body(classroom, 50))

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_content_item"

    def test_repeated_operation_applies_once(self, client: TestClient, classroom: Classroom) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)
        body = score_body(classroom, 64, operation_id="grade-sheet-row-17")

        client.put(url, json=body)
        response = client.put(url, json=body)

        assert response.status_code == 200
        assert len(response.json()["history"]) == 1

    def test_toggle_resubmission(self, client: TestClient, classroom: Classroom) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)
        client.put(url, json=score_body(classroom, 40))

        response = client.put(f"{url}/resubmission", json={"allow": True})

        assert response.status_code == 200
        assert response.json()["can_resubmit"] is True

    def test_toggle_without_grade(self, client: TestClient, classroom: Classroom) -> None:
        url = grade_url(classroom.student, classroom.exam.content_item_id)

        response = client.put(f"{url}/resubmission", json={"allow": True})

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_grade"


class TestRubricGrading(object):
    """Tests for POST /api/grades/{student_id}/{content_item_id}/rubric and POST /api/rubrics/{rubric_id}/score."""

    selections: t.ClassVar[dict[str, dict[str, str]]] = {
        "thesis": {"level_id": "good"},
        "evidence": {"level_id": "excellent", "comment": "Well sourced"},
        "style": {"level_id": "fair"},
    }

    def test_grade_with_rubric(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(
            f"{grade_url(classroom.student, classroom.assignment.content_item_id)}/rubric",
            json={
                "course_id": str(classroom.course.course_id),
                "selections": self.selections,
                "modifier_name": "Ada Instructor",
            },
        )

        assert response.status_code == 200
        grade = response.json()
        assert grade["score"] == 75
        assert grade["rubric_feedback"]["evidence"] == {"level_id": "excellent", "points": 4, "comment": "Well sourced"}

    def test_invalid_selection(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(
            f"{grade_url(classroom.student, classroom.assignment.content_item_id)}/rubric",
            json={
                "course_id": str(classroom.course.course_id),
                "selections": {"thesis": {"level_id": "legendary"}},
                "modifier_name": "Ada Instructor",
            },
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_rubric_selection"

    def test_preview(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(f"/api/rubrics/{classroom.rubric.rubric_id}/score", json={"selections": self.selections})

        assert response.status_code == 200
        assert (response.json()["points"], response.json()["max_points"], response.json()["percentage"]) == (9, 12, 75)
        assert client.get(grade_url(classroom.student, classroom.assignment.content_item_id)).status_code == 404

    def test_preview_unknown_rubric(self, client: TestClient, classroom: Classroom) -> None:
        response = client.post(f"/api/rubrics/{RubricID()}/score", json={"selections": {}})

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_rubric"


class TestQuizMarking(object):
    """Tests for GET /api/submissions/{submission_id} and POST /api/grades/{student_id}/{content_item_id}/quiz."""

    def submit(self, client: TestClient, classroom: Classroom) -> dict[str, t.Any]:
        tf, _, essay = classroom.questions
        response = client.post(
            "/api/submissions",
            json={
                "type": "quiz",
                "student_id": str(classroom.student.user_id),
                "course_id": str(classroom.course.course_id),
                "content_item_id": str(classroom.manual_quiz.content_item_id),
                "answers": {str(tf.question_id): True, str(essay.question_id): "Sums of samples look normal."},
            },
        )
        assert response.status_code == 201
        return response.json()

    def mark(self, client: TestClient, classroom: Classroom, marks: dict[str, t.Any]) -> t.Any:
        return client.post(
            f"{grade_url(classroom.student, classroom.manual_quiz.content_item_id)}/quiz",
            json={
                "course_id": str(classroom.course.course_id),
                "marks": marks,
                "modifier_name": "Ada Instructor",
            },
        )

    def test_details_then_marks(self, client: TestClient, classroom: Classroom) -> None:
        tf, _, essay = classroom.questions
        submitted = self.submit(client, classroom)
        assert submitted["grade"]["status"] == "pending review"

        response = client.get(f"/api/submissions/{submitted['submission']['submission_id']}")
        assert response.status_code == 200
        details = response.json()
        assert [q["question_id"] for q in details["questions"]] == [str(tf.question_id), str(essay.question_id)]
        assert [q["type"] for q in details["questions"]] == ["true-false", "short-answer"]
        assert details["grade"]["status"] == "pending review"
        assert details["rubric"] is None

        response = self.mark(client, classroom, {str(essay.question_id): 0})

        assert response.status_code == 200
        grade = response.json()
        assert grade["status"] == "graded"
        assert grade["score"] == 50
        assert grade["submission_id"] == submitted["submission"]["submission_id"]

    def test_fractional_mark(self, client: TestClient, classroom: Classroom) -> None:
        _, _, essay = classroom.questions
        self.submit(client, classroom)

        response = self.mark(client, classroom, {str(essay.question_id): 0.5})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_score"

    def test_without_submission(self, client: TestClient, classroom: Classroom) -> None:
        _, _, essay = classroom.questions

        response = self.mark(client, classroom, {str(essay.question_id): 1})

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_unknown_submission(self, client: TestClient, classroom: Classroom) -> None:
        response = client.get(f"/api/submissions/{SubmissionID()}")

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_submission"
