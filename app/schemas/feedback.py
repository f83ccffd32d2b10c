from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, Annotated
from datetime import datetime

Band = Annotated[float, Field(ge=0, le=9)]

class FeedbackCreate(BaseModel):
    """AI grading result for one (attempt, skill) pair.

    Writing results use the task/coherence criteria, speaking results the
    pronunciation/fluency criteria. ``overall`` is derived from the criteria
    when the grader leaves it out.
    """
    skill_id: int
    task_achievement: Optional[Band] = None
    coherence_cohesion: Optional[Band] = None
    pronunciation: Optional[Band] = None
    fluency: Optional[Band] = None
    lexical_resource: Optional[Band] = None
    grammar_accuracy: Optional[Band] = None
    overall: Optional[Band] = None
    transcript: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None

class WritingFeedback(BaseModel):
    id: int
    attempt_id: int
    writing_id: int
    task_achievement: Optional[float] = None
    coherence_cohesion: Optional[float] = None
    lexical_resource: Optional[float] = None
    grammar_accuracy: Optional[float] = None
    overall: float
    feedback_json: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class SpeakingFeedback(BaseModel):
    id: int
    attempt_id: int
    speaking_id: int
    pronunciation: Optional[float] = None
    fluency: Optional[float] = None
    lexical_resource: Optional[float] = None
    grammar_accuracy: Optional[float] = None
    coherence: Optional[float] = None
    overall: float
    transcript: Optional[str] = None
    feedback_json: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class GradingJob(BaseModel):
    id: int
    skill_id: int
    status: str
    error: Optional[str] = None
    tries: int = 0

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
