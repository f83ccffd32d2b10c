import asyncio
import json

import httpx
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.services.ai_grading import AIGradingClient
from app.services.grading_worker import GradingWorker
from tests.helpers.ielts import api_call, data_of, error_of, reading_exam, speaking_exam, submit, writing_exam

SPEAKING_REPLY = {
    "feedback": {"overview": "Relaxed and clear."},
    "band_estimate": {"pronunciation": 6.0, "fluency": 6.5, "lexical_resource": 6.0, "grammar_accuracy": 6.5},
}


def grader(handler) -> GradingWorker:
    client = AIGradingClient(api_key="test-key", base_url="https://ai.test/v1", transport=httpx.MockTransport(handler))
    return GradingWorker(client=client)


def chat_reply(payload: dict) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(payload)}}]})


def test_writing_feedback_settles_the_attempt(client: TestClient, headers_for):
    """
    Attach feedback for each writing task through the grader callback.
    The attempt stays pending until every queued task has feedback.
    """
    print("\n[TEST] Writing feedback callback")
    admin_headers = headers_for("admin")
    user_headers = headers_for("user")

    print("[1] Submitting both writing tasks")
    exam = writing_exam(client, admin_headers, tasks=2)
    task_one, task_two = exam["sections"]
    attempt = data_of(submit(client, user_headers, exam["id"], [
        {"SkillId": task_one["id"], "Answers": ["The chart shows a steady rise."]},
        {"SkillId": task_two["id"], "Answers": ["Some people argue that...", "In conclusion..."]},
    ]))
    feedback_path = f"/exams/attempts/{attempt['id']}/feedback"

    print("[2] Posting criteria only for task 1")
    r_one = api_call(client, "POST", feedback_path, headers=admin_headers, json={
        "skill_id": task_one["id"],
        "task_achievement": 6.0,
        "coherence_cohesion": 6.5,
        "lexical_resource": 6.0,
        "grammar_accuracy": 6.5,
        "analysis": {"overall_feedback": {"overview": "Good overview."}},
    })
    assert r_one.status_code == 201
    assert data_of(r_one)["overall"] == 6.5

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=user_headers))
    assert detail["status"] == "pending_ai"
    assert detail["score"]["state"] == "pending"

    print("[3] Posting an overall band for task 2")
    api_call(client, "POST", feedback_path, headers=admin_headers, json={"skill_id": task_two["id"], "overall": 7.0})

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=user_headers))
    assert detail["status"] == "graded"
    # mean 6.75 rounds up
    assert detail["score"] == {"state": "scored", "value": 7.0}
    assert {f["writing_id"]: f["overall"] for f in detail["writing_feedbacks"]} == {task_one["id"]: 6.5, task_two["id"]: 7.0}
    assert all(job["status"] == "completed" for job in detail["grading_jobs"])
    print("[OK] Writing attempt graded from feedback")


def test_duplicate_feedback_conflicts_and_put_replaces(client: TestClient, headers_for):
    print("\n[TEST] Duplicate feedback")
    admin_headers = headers_for("admin")
    exam = writing_exam(client, admin_headers)
    task = exam["sections"][0]
    attempt = data_of(submit(client, headers_for("user"), exam["id"], [{"SkillId": task["id"], "Answers": ["Essay"]}]))
    feedback_path = f"/exams/attempts/{attempt['id']}/feedback"

    api_call(client, "POST", feedback_path, headers=admin_headers, json={"skill_id": task["id"], "overall": 6.0})

    print("[1] Posting feedback for the same task again")
    r_dup = api_call(client, "POST", feedback_path, headers=admin_headers, json={"skill_id": task["id"], "overall": 8.0},
                     expected_min=409, expected_max=410)
    assert error_of(r_dup)["code"] == "CONFLICT"

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=admin_headers))
    assert detail["total_score"] == 6.0
    assert len(detail["writing_feedbacks"]) == 1

    print("[2] Replacing it with PUT")
    r_put = api_call(client, "PUT", feedback_path, headers=admin_headers, json={"skill_id": task["id"], "overall": 5.0})
    assert data_of(r_put)["overall"] == 5.0

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=admin_headers))
    assert detail["total_score"] == 5.0
    assert len(detail["writing_feedbacks"]) == 1
    print("[OK] Duplicate rejected, replacement applied")


def test_graded_attempt_takes_no_new_feedback(client: TestClient, headers_for):
    admin_headers = headers_for("admin")
    exam = writing_exam(client, admin_headers, tasks=2)
    task_one, task_two = exam["sections"]
    attempt = data_of(submit(client, headers_for("user"), exam["id"], [{"SkillId": task_one["id"], "Answers": ["Essay"]}]))
    feedback_path = f"/exams/attempts/{attempt['id']}/feedback"

    api_call(client, "POST", feedback_path, headers=admin_headers, json={"skill_id": task_one["id"], "overall": 8.0})

    # task 2 was never answered, so the attempt is already graded
    r_late = api_call(client, "POST", feedback_path, headers=admin_headers,
                      json={"skill_id": task_two["id"], "overall": 2.0}, expected_min=409, expected_max=410)
    assert "already graded" in error_of(r_late)["message"]
    # replacing needs feedback to replace
    api_call(client, "PUT", feedback_path, headers=admin_headers,
             json={"skill_id": task_two["id"], "overall": 2.0}, expected_min=404, expected_max=405)

    detail = data_of(api_call(client, "GET", f"/exams/attempts/{attempt['id']}", headers=admin_headers))
    assert detail["score"] == {"state": "scored", "value": 8.0}
    assert [f["writing_id"] for f in detail["writing_feedbacks"]] == [task_one["id"]]


def test_speaking_feedback_overall_comes_from_criteria(client: TestClient, headers_for):
    admin_headers = headers_for("admin")
    exam = speaking_exam(client, admin_headers)
    part = exam["sections"][0]
    attempt = data_of(submit(client, headers_for("user"), exam["id"], [{"SkillId": part["id"], "Answers": ["Hello"]}]))

    feedback = data_of(api_call(client, "POST", f"/exams/attempts/{attempt['id']}/feedback", headers=admin_headers, json={
        "skill_id": part["id"],
        "pronunciation": 7.0,
        "fluency": 7.0,
        "lexical_resource": 7.5,
        "grammar_accuracy": 7.5,
        "overall": 5.0,
        "transcript": "Hello",
    }))

    assert feedback["overall"] == 7.5
    assert feedback["coherence"] == 7.0
    assert feedback["transcript"] == "Hello"


def test_feedback_rules(client: TestClient, headers_for):
    admin_headers = headers_for("admin")
    user_headers = headers_for("user")
    writing = writing_exam(client, admin_headers)
    other = writing_exam(client, admin_headers)
    reading = reading_exam(client, admin_headers, ["A"])
    task = writing["sections"][0]

    attempt = data_of(submit(client, user_headers, writing["id"], [{"SkillId": task["id"], "Answers": ["Essay"]}]))
    path = f"/exams/attempts/{attempt['id']}/feedback"

    # candidates cannot grade themselves
    api_call(client, "POST", path, headers=user_headers, json={"skill_id": task["id"], "overall": 9.0},
             expected_min=403, expected_max=404)
    # a task from another exam
    api_call(client, "POST", path, headers=admin_headers, json={"skill_id": other["sections"][0]["id"], "overall": 6.0},
             expected_min=404, expected_max=405)
    # neither an overall band nor all criteria
    api_call(client, "POST", path, headers=admin_headers, json={"skill_id": task["id"], "task_achievement": 6.0},
             expected_min=400, expected_max=401)
    # bands live between 0 and 9
    api_call(client, "POST", path, headers=admin_headers, json={"skill_id": task["id"], "overall": 9.5},
             expected_min=422, expected_max=423)

    graded = data_of(submit(client, user_headers, reading["id"], [{"SkillId": reading["sections"][0]["id"], "Answers": ["A"]}]))
    r_reading = api_call(client, "POST", f"/exams/attempts/{graded['id']}/feedback", headers=admin_headers,
                         json={"skill_id": reading["sections"][0]["id"], "overall": 6.0}, expected_min=400, expected_max=401)
    assert "graded automatically" in error_of(r_reading)["message"]

    started = data_of(api_call(client, "POST", f"/exams/{writing['id']}/attempts", headers=user_headers))
    api_call(client, "POST", f"/exams/attempts/{started['id']}/feedback", headers=admin_headers,
             json={"skill_id": task["id"], "overall": 6.0}, expected_min=409, expected_max=410)


def test_failed_ai_grading_is_reported_and_can_be_retried(client: TestClient, headers_for, db_session: Session):
    """
    The grader fails, the attempt reports a failed score rather than a
    zero, and a retry re-queues the task for the next worker run.
    """
    print("\n[TEST] AI grading failure and retry")
    user_headers = headers_for("user")
    exam = speaking_exam(client, headers_for("admin"))
    part = exam["sections"][0]
    attempt = data_of(submit(client, user_headers, exam["id"], [
        {"SkillId": part["id"], "Answers": ["I like hiking with my family"]},
    ]))
    detail_path = f"/exams/attempts/{attempt['id']}"

    print("[1] Running the worker against a failing provider")
    failing = grader(lambda request: httpx.Response(503, json={"error": "overloaded"}))
    assert asyncio.run(failing.run_once(db_session)) == 1

    detail = data_of(api_call(client, "GET", detail_path, headers=user_headers))
    assert detail["status"] == "grading_failed"
    assert detail["score"] == {"state": "failed", "value": None}
    assert detail["grading_jobs"][0]["status"] == "failed"
    assert "503" in detail["grading_jobs"][0]["error"]

    print("[2] Checking the dashboard leaves the failure out of the averages")
    bands = data_of(api_call(client, "GET", "/account/me/bands", headers=user_headers))
    assert bands["speaking"]["attempts"] == 0
    assert bands["failed_attempts"] == 1

    print("[3] Retrying")
    retried = data_of(api_call(client, "POST", f"{detail_path}/retry-grading", headers=user_headers))
    assert retried["status"] == "pending_ai"
    assert retried["score"]["state"] == "pending"
    api_call(client, "POST", f"{detail_path}/retry-grading", headers=user_headers, expected_min=409, expected_max=410)

    print("[4] Running the worker against a healthy provider")
    seen = []

    def healthy(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content)["messages"][1]["content"])
        return chat_reply(SPEAKING_REPLY)

    assert asyncio.run(grader(healthy).run_once(db_session)) == 1
    assert "I like hiking with my family" in seen[0]

    detail = data_of(api_call(client, "GET", detail_path, headers=user_headers))
    assert detail["status"] == "graded"
    # 6.25 rounds up to the next half band
    assert detail["score"] == {"state": "scored", "value": 6.5}
    assert detail["speaking_feedbacks"][0]["transcript"] == "I like hiking with my family"
    assert detail["grading_jobs"][0]["tries"] == 2

    print("[5] Checking the queue is drained")
    assert asyncio.run(grader(healthy).run_once(db_session)) == 0
    print("[OK] Failure surfaced and retried")


def test_only_failed_attempts_of_your_own_can_be_retried(client: TestClient, headers_for):
    exam = writing_exam(client, headers_for("admin"))
    attempt = data_of(submit(client, headers_for("user"), exam["id"], [
        {"SkillId": exam["sections"][0]["id"], "Answers": ["Essay"]},
    ]))
    path = f"/exams/attempts/{attempt['id']}/retry-grading"

    api_call(client, "POST", path, headers=headers_for("user2"), expected_min=403, expected_max=404)
    api_call(client, "POST", path, headers=headers_for("user"), expected_min=409, expected_max=410)
