import json
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, computed_field, field_validator
from typing import Optional, List, Any
from datetime import datetime

from app.core.constants import ExamAttemptStatusEnum, ScoreStateEnum
from app.schemas.exam import Exam
from app.schemas.feedback import WritingFeedback, SpeakingFeedback, GradingJob

class AnswerGroupIn(BaseModel):
    """One skill section's answers: a positional list or a ``{questionKey: value}`` map."""
    skill_id: int = Field(validation_alias=AliasChoices("SkillId", "skillId", "skill_id"))
    answers: Any = Field(default=None, validation_alias=AliasChoices("Answers", "answers"))

class ExamAttemptSubmit(BaseModel):
    answers: List[AnswerGroupIn] = Field(default_factory=list, validation_alias=AliasChoices("answers", "Answers", "AnswerText", "answer_text"))
    started_at: Optional[datetime] = None

    @field_validator("answers", mode="before")
    @classmethod
    def decode_answer_text(cls, v):
        # Older clients post the serialized payload as a JSON string
        while isinstance(v, str):
            try:
                v = json.loads(v) if v.strip() else []
            except ValueError:
                raise ValueError("answers must be a JSON array of {SkillId, Answers} objects")
        return v

class AnswerGroup(BaseModel):
    skill_id: int
    answers: List[str] = []

class SkillResult(BaseModel):
    skill_id: int
    correct: int
    total: int

class ScoreView(BaseModel):
    state: ScoreStateEnum
    value: Optional[float] = None

class ExamAttempt(BaseModel):
    id: int
    user_id: int
    exam_id: int
    status: ExamAttemptStatusEnum
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    total_score: Optional[float] = None
    correct_count: Optional[int] = None
    total_questions: Optional[int] = None
    accuracy: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def score(self) -> ScoreView:
        if self.status == ExamAttemptStatusEnum.GRADED and self.total_score is not None:
            return ScoreView(state=ScoreStateEnum.SCORED, value=self.total_score)
        if self.status == ExamAttemptStatusEnum.GRADING_FAILED:
            return ScoreView(state=ScoreStateEnum.FAILED)
        if self.status == ExamAttemptStatusEnum.STARTED:
            return ScoreView(state=ScoreStateEnum.NOT_SUBMITTED)
        return ScoreView(state=ScoreStateEnum.PENDING)

class ExamAttemptSummary(ExamAttempt):
    exam_name: Optional[str] = None
    exam_type: Optional[str] = None

class ExamAttemptDetail(ExamAttempt):
    exam: Exam
    answers: List[AnswerGroup] = []
    skill_results: List[SkillResult] = []
    writing_feedbacks: List[WritingFeedback] = []
    speaking_feedbacks: List[SpeakingFeedback] = []
    grading_jobs: List[GradingJob] = []
