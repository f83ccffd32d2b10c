import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import httpx

from app.core.config import settings
from app.utils.logger import setup_logger

logger = setup_logger("ai_grading", "ai_grading.log")

WRITING_PROMPT = """You are an IELTS Writing examiner. Evaluate the essay below against the official
IELTS Writing band descriptors.

Return STRICT JSON ONLY with this structure:
{{
  "grammar_vocab": {{"overview": "...", "errors": [{{"type": "Grammar|Vocabulary", "incorrect": "...", "suggestion": "...", "explanation": "..."}}]}},
  "overall_feedback": {{"overview": "...", "refinements": [{{"original": "...", "improved": "...", "explanation": "..."}}]}},
  "band_estimate": {{
    "task_achievement": 0-9,
    "organization_logic": 0-9,
    "lexical_resource": 0-9,
    "grammar_accuracy": 0-9,
    "overall": 0-9
  }}
}}

Essay Question:
{question}

Essay Answer:
{answer}
"""

SPEAKING_PROMPT = """You are an IELTS Speaking examiner. Evaluate the candidate's spoken answer
(given as a transcript) against the official IELTS Speaking band descriptors.

Return STRICT JSON ONLY with this structure:
{{
  "feedback": {{"overview": "...", "strengths": ["..."], "improvements": ["..."]}},
  "band_estimate": {{
    "pronunciation": 0-9,
    "fluency": 0-9,
    "lexical_resource": 0-9,
    "grammar_accuracy": 0-9
  }}
}}

Question:
{question}

Transcript:
{transcript}
"""

WRITING_CRITERIA = {
    "task_achievement": "task_achievement",
    "organization_logic": "coherence_cohesion",
    "coherence_cohesion": "coherence_cohesion",
    "lexical_resource": "lexical_resource",
    "grammar_accuracy": "grammar_accuracy",
}

SPEAKING_CRITERIA = {
    "pronunciation": "pronunciation",
    "fluency": "fluency",
    "lexical_resource": "lexical_resource",
    "grammar_accuracy": "grammar_accuracy",
}


@dataclass
class AIFeedback:
    criteria: Dict[str, float]
    overall: Optional[float] = None
    transcript: Optional[str] = None
    analysis: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GradingFailed:
    """Returned instead of a score when the grader cannot produce one."""
    reason: str


GradingOutcome = Union[AIFeedback, GradingFailed]


def extract_json(raw: str) -> Dict[str, Any]:
    """Pull the outermost JSON object out of a model reply."""
    first = raw.find("{")
    last = raw.rfind("}")
    if first < 0 or last <= first:
        raise ValueError("no JSON object in model output")
    data = json.loads(raw[first:last + 1])
    if not isinstance(data, dict):
        raise ValueError("model output is not a JSON object")
    return data


def parse_band_estimate(data: Dict[str, Any], mapping: Dict[str, str]) -> GradingOutcome:
    if data.get("error"):
        return GradingFailed(reason=str(data["error"]))

    band = data.get("band_estimate")
    if not isinstance(band, dict):
        return GradingFailed(reason="band_estimate missing from grader output")

    criteria: Dict[str, float] = {}
    try:
        for source, target in mapping.items():
            if band.get(source) is not None:
                criteria[target] = float(band[source])
        overall = float(band["overall"]) if band.get("overall") is not None else None
    except (TypeError, ValueError) as e:
        return GradingFailed(reason=f"non-numeric band in grader output: {e}")

    expected = set(mapping.values())
    if set(criteria) != expected:
        missing = ", ".join(sorted(expected - set(criteria)))
        return GradingFailed(reason=f"grader output missing criteria: {missing}")
    if any(not 0 <= v <= 9 for v in criteria.values()) or (overall is not None and not 0 <= overall <= 9):
        return GradingFailed(reason="grader returned a band outside 0-9")

    return AIFeedback(criteria=criteria, overall=overall, analysis=data)


class AIGradingClient:
    """Client for an OpenAI-compatible chat/transcription API."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.model = model or settings.OPENAI_MODEL
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            transport=self.transport,
        )

    async def _complete(self, system: str, prompt: str) -> str:
        async with self._client() as client:
            response = await client.post("/chat/completions", json={
                "model": self.model,
                "temperature": 0.3,
                "response_format": {"type": "json_object"},
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
            })
            response.raise_for_status()
            body = response.json()
        return body["choices"][0]["message"]["content"] or ""

    async def _download_audio(self, audio_url: str) -> bytes:
        # user supplied URL: no provider credentials and no base_url
        async with httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT_SECONDS, transport=self.transport) as client:
            audio = await client.get(audio_url)
            audio.raise_for_status()
            return audio.content

    async def transcribe(self, audio_url: str) -> str:
        content = await self._download_audio(audio_url)
        filename = audio_url.rsplit("/", 1)[-1] or "answer.webm"
        async with self._client() as client:
            response = await client.post(
                "/audio/transcriptions",
                data={"model": settings.OPENAI_TRANSCRIBE_MODEL},
                files={"file": (filename, content)},
            )
            response.raise_for_status()
            return response.json().get("text", "")

    async def grade_writing(self, question: str, answer: str, image_url: Optional[str] = None) -> GradingOutcome:
        if not self.api_key:
            return GradingFailed(reason="AI grading is not configured")
        if not answer or not answer.strip():
            return GradingFailed(reason="empty essay")

        prompt = WRITING_PROMPT.format(question=question or "Unknown question", answer=answer)
        if image_url:
            prompt += f"\nTask 1 chart image: {image_url}\n"
        try:
            raw = await self._complete(
                "You are a certified IELTS Writing examiner. Always return valid JSON following the schema exactly.",
                prompt,
            )
            outcome = parse_band_estimate(extract_json(raw), WRITING_CRITERIA)
        except httpx.HTTPStatusError as e:
            logger.error(f"Writing grading failed with HTTP {e.response.status_code}")
            return GradingFailed(reason=f"AI provider returned HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Writing grading network error: {e}")
            return GradingFailed(reason=f"AI provider unreachable: {e}")
        except (KeyError, IndexError, ValueError) as e:
            logger.error(f"Could not parse writing grader output: {e}")
            return GradingFailed(reason="invalid JSON returned from AI")

        if isinstance(outcome, GradingFailed):
            logger.warning(f"Writing grader returned no score: {outcome.reason}")
        return outcome

    async def grade_speaking(self, question: str, transcript: Optional[str] = None,
                             audio_url: Optional[str] = None) -> GradingOutcome:
        if not self.api_key:
            return GradingFailed(reason="AI grading is not configured")

        try:
            if not (transcript and transcript.strip()) and audio_url:
                transcript = await self.transcribe(audio_url)
            if not transcript or not transcript.strip():
                return GradingFailed(reason="no speech to grade")

            raw = await self._complete(
                "You are a certified IELTS Speaking examiner. Always return valid JSON following the schema exactly.",
                SPEAKING_PROMPT.format(question=question or "Unknown question", transcript=transcript),
            )
            outcome = parse_band_estimate(extract_json(raw), SPEAKING_CRITERIA)
        except httpx.HTTPStatusError as e:
            logger.error(f"Speaking grading failed with HTTP {e.response.status_code}")
            return GradingFailed(reason=f"AI provider returned HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Speaking grading network error: {e}")
            return GradingFailed(reason=f"AI provider unreachable: {e}")
        except (KeyError, IndexError, ValueError) as e:
            logger.error(f"Could not parse speaking grader output: {e}")
            return GradingFailed(reason="invalid JSON returned from AI")

        if isinstance(outcome, AIFeedback):
            outcome.transcript = transcript
        else:
            logger.warning(f"Speaking grader returned no score: {outcome.reason}")
        return outcome


ai_grading_client = AIGradingClient()
