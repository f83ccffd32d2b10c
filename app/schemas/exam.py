from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

from app.core.constants import ExamTypeEnum
from app.schemas.skill import ReadingPublic, ListeningPublic, Writing, Speaking

class ExamBase(BaseModel):
    exam_name: str
    exam_type: ExamTypeEnum

    @field_validator("exam_name")
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Exam name cannot be empty")
        return v.strip()

class ExamCreate(ExamBase):
    pass

class ExamUpdate(BaseModel):
    exam_name: Optional[str] = None
    exam_type: Optional[ExamTypeEnum] = None

class Exam(ExamBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ExamDetail(Exam):
    readings: List[ReadingPublic] = []
    listenings: List[ListeningPublic] = []
    writings: List[Writing] = []
    speakings: List[Speaking] = []
