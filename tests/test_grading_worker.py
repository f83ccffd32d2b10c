import asyncio
import json

import httpx
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import GradingJobStatusEnum
from app.crud.grading_job import grading_job as crud_grading_job
from app.services.ai_grading import AIFeedback, AIGradingClient
from app.services.grading_worker import GradingWorker, to_feedback_create
from tests.helpers.ielts import api_call, data_of, submit, writing_exam

WRITING_REPLY = {
    "overall_feedback": {"overview": "Well argued."},
    "band_estimate": {
        "task_achievement": 8.0,
        "organization_logic": 8.0,
        "lexical_resource": 8.0,
        "grammar_accuracy": 8.0,
        "overall": 8.0,
    },
}


def healthy_worker(requests: list) -> GradingWorker:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(WRITING_REPLY)}}]})

    return GradingWorker(AIGradingClient(api_key="test-key", base_url="https://ai.test/v1",
                                         transport=httpx.MockTransport(handler)))


def test_to_feedback_create_carries_criteria_and_analysis():
    result = AIFeedback(criteria={"pronunciation": 6.0, "fluency": 6.5}, overall=None, transcript="Hi",
                        analysis={"feedback": {"overview": "ok"}})
    feedback = to_feedback_create(7, result)
    assert feedback.skill_id == 7
    assert (feedback.pronunciation, feedback.fluency) == (6.0, 6.5)
    assert feedback.transcript == "Hi"
    assert feedback.analysis == {"feedback": {"overview": "ok"}}


def test_worker_grades_every_queued_task(client: TestClient, headers_for, db_session: Session):
    exam = writing_exam(client, headers_for("admin"), tasks=2)
    user_headers = headers_for("user")
    attempt = data_of(submit(client, user_headers, exam["id"], [
        {"SkillId": exam["sections"][0]["id"], "Answers": ["Task one answer"]},
        {"SkillId": exam["sections"][1]["id"], "Answers": ["First paragraph", "Second paragraph"]},
    ]))

    requests = []
    assert asyncio.run(healthy_worker(requests).run_once(db_session)) == 2

    essays = [r["messages"][1]["content"] for r in requests]
    assert "Task one answer" in essays[0]
    assert "First paragraph\nSecond paragraph" in essays[1]
    assert requests[0]["response_format"] == {"type": "json_object"}

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=user_headers))
    assert detail["score"] == {"state": "scored", "value": 8.0}
    assert all(json.loads(f["feedback_json"])["overall_feedback"]["overview"] == "Well argued."
               for f in detail["writing_feedbacks"])


def test_worker_yields_to_feedback_posted_meanwhile(client: TestClient, headers_for, db_session: Session):
    """Feedback from the callback wins over a late AI result for the same task."""
    admin_headers = headers_for("admin")
    exam = writing_exam(client, admin_headers)
    task = exam["sections"][0]
    attempt = data_of(submit(client, headers_for("user"), exam["id"], [{"SkillId": task["id"], "Answers": ["Essay"]}]))
    api_call(client, "POST", f"/exams/attempts/{attempt['id']}/feedback", headers=admin_headers,
             json={"skill_id": task["id"], "overall": 6.0})

    # the job was claimed before the callback arrived
    job = crud_grading_job.get_by_attempt_and_skill(db_session, attempt_id=attempt["id"], skill_id=task["id"])
    crud_grading_job.update(db_session, db_obj=job, obj_in={"status": GradingJobStatusEnum.QUEUED})

    assert asyncio.run(healthy_worker([]).run_once(db_session)) == 1

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=admin_headers))
    assert detail["total_score"] == 6.0
    assert detail["status"] == "graded"
    assert [j["status"] for j in detail["grading_jobs"]] == ["completed"]
