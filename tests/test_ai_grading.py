import json

import httpx
import pytest

from app.services.ai_grading import (
    AIFeedback,
    AIGradingClient,
    GradingFailed,
    SPEAKING_CRITERIA,
    WRITING_CRITERIA,
    extract_json,
    parse_band_estimate,
)

WRITING_REPLY = {
    "grammar_vocab": {"overview": "Mostly accurate.", "errors": []},
    "overall_feedback": {"overview": "Clear position.", "refinements": []},
    "band_estimate": {
        "task_achievement": 6.5,
        "organization_logic": 6.0,
        "lexical_resource": 6.5,
        "grammar_accuracy": 6.0,
        "overall": 6.5,
    },
}

SPEAKING_REPLY = {
    "feedback": {"overview": "Fluent with some hesitation."},
    "band_estimate": {"pronunciation": 6.0, "fluency": 6.5, "lexical_resource": 6.0, "grammar_accuracy": 6.5},
}


def chat_reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def make_client(handler) -> AIGradingClient:
    return AIGradingClient(api_key="test-key", base_url="https://ai.test/v1", model="test-model",
                           transport=httpx.MockTransport(handler))


def test_extract_json_ignores_surrounding_text():
    raw = 'Here you go:\n```json\n{"band_estimate": {"overall": 7}}\n```'
    assert extract_json(raw) == {"band_estimate": {"overall": 7}}


def test_extract_json_without_object_raises():
    with pytest.raises(ValueError):
        extract_json("no json here")


def test_parse_band_estimate_maps_writing_criteria():
    outcome = parse_band_estimate(WRITING_REPLY, WRITING_CRITERIA)
    assert isinstance(outcome, AIFeedback)
    assert outcome.criteria == {
        "task_achievement": 6.5,
        "coherence_cohesion": 6.0,
        "lexical_resource": 6.5,
        "grammar_accuracy": 6.0,
    }
    assert outcome.overall == 6.5


def test_parse_band_estimate_rejects_missing_or_out_of_range_scores():
    missing = {"band_estimate": {"pronunciation": 6.0}}
    assert isinstance(parse_band_estimate(missing, SPEAKING_CRITERIA), GradingFailed)

    out_of_range = {"band_estimate": {**SPEAKING_REPLY["band_estimate"], "fluency": 11}}
    assert isinstance(parse_band_estimate(out_of_range, SPEAKING_CRITERIA), GradingFailed)

    assert isinstance(parse_band_estimate({"error": "Invalid JSON returned from AI"}, SPEAKING_CRITERIA), GradingFailed)


@pytest.mark.asyncio
async def test_grade_writing_posts_essay_and_parses_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return chat_reply(json.dumps(WRITING_REPLY))

    outcome = await make_client(handler).grade_writing("Discuss both views.", "Some people think...")

    assert isinstance(outcome, AIFeedback)
    assert outcome.overall == 6.5
    assert outcome.analysis["overall_feedback"]["overview"] == "Clear position."
    assert seen["path"] == "/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "test-model"
    assert "Some people think..." in seen["body"]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_grade_writing_provider_error_is_a_failure_not_a_score():
    outcome = await make_client(lambda request: httpx.Response(500, json={"error": "boom"})).grade_writing("Q", "essay")
    assert isinstance(outcome, GradingFailed)
    assert "500" in outcome.reason


@pytest.mark.asyncio
async def test_grade_writing_unparseable_reply_is_a_failure():
    outcome = await make_client(lambda request: chat_reply("I cannot grade this.")).grade_writing("Q", "essay")
    assert isinstance(outcome, GradingFailed)


@pytest.mark.asyncio
async def test_grade_writing_network_error_is_a_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    outcome = await make_client(handler).grade_writing("Q", "essay")
    assert isinstance(outcome, GradingFailed)


@pytest.mark.asyncio
async def test_grading_without_api_key_fails_cleanly():
    client = AIGradingClient(api_key="", base_url="https://ai.test/v1")
    assert isinstance(await client.grade_writing("Q", "essay"), GradingFailed)
    assert isinstance(await client.grade_speaking("Q", "hello"), GradingFailed)


@pytest.mark.asyncio
async def test_grade_speaking_transcribes_audio_first():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.host == "cdn.test":
            return httpx.Response(200, content=b"fake-audio")
        if request.url.path.endswith("/audio/transcriptions"):
            return httpx.Response(200, json={"text": "I usually go hiking at weekends."})
        return chat_reply(json.dumps(SPEAKING_REPLY))

    outcome = await make_client(handler).grade_speaking("Describe a hobby.", audio_url="https://cdn.test/a/answer.webm")

    assert isinstance(outcome, AIFeedback)
    assert outcome.transcript == "I usually go hiking at weekends."
    assert outcome.criteria["fluency"] == 6.5
    assert calls == ["/a/answer.webm", "/v1/audio/transcriptions", "/v1/chat/completions"]


@pytest.mark.asyncio
async def test_audio_download_does_not_carry_the_api_key():
    auth_by_host = {}

    def handler(request: httpx.Request) -> httpx.Response:
        auth_by_host.setdefault(request.url.host, []).append(request.headers.get("Authorization"))
        if request.url.host == "uploads.example":
            return httpx.Response(200, content=b"fake-audio")
        if request.url.path.endswith("/audio/transcriptions"):
            return httpx.Response(200, json={"text": "Hello there."})
        return chat_reply(json.dumps(SPEAKING_REPLY))

    outcome = await make_client(handler).grade_speaking("Q", audio_url="https://uploads.example/a.webm")

    assert isinstance(outcome, AIFeedback)
    assert auth_by_host["uploads.example"] == [None]
    assert auth_by_host["ai.test"] == ["Bearer test-key", "Bearer test-key"]


@pytest.mark.asyncio
async def test_grade_speaking_without_speech_fails():
    outcome = await make_client(lambda request: chat_reply("{}")).grade_speaking("Q", transcript="  ")
    assert isinstance(outcome, GradingFailed)
