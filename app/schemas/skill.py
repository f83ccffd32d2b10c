from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

# ===== Reading =====

class ReadingBase(BaseModel):
    reading_content: str
    reading_question: Optional[str] = None
    reading_type: str = "Markdown"
    question_html: Optional[str] = None
    display_order: int = 1

class ReadingCreate(ReadingBase):
    correct_answer: Optional[str] = None

class ReadingUpdate(BaseModel):
    reading_content: Optional[str] = None
    reading_question: Optional[str] = None
    reading_type: Optional[str] = None
    question_html: Optional[str] = None
    display_order: Optional[int] = None
    correct_answer: Optional[str] = None

class ReadingPublic(ReadingBase):
    """Reading section as shown to candidates, without the answer key."""
    id: int
    exam_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Reading(ReadingPublic):
    correct_answer: Optional[str] = None

# ===== Listening =====

class ListeningBase(BaseModel):
    listening_content: str
    listening_question: Optional[str] = None
    listening_type: str = "Markdown"
    question_html: Optional[str] = None
    display_order: int = 1

class ListeningCreate(ListeningBase):
    correct_answer: Optional[str] = None

class ListeningUpdate(BaseModel):
    listening_content: Optional[str] = None
    listening_question: Optional[str] = None
    listening_type: Optional[str] = None
    question_html: Optional[str] = None
    display_order: Optional[int] = None
    correct_answer: Optional[str] = None

class ListeningPublic(ListeningBase):
    id: int
    exam_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Listening(ListeningPublic):
    correct_answer: Optional[str] = None

# ===== Writing =====

class WritingBase(BaseModel):
    writing_question: str
    image_url: Optional[str] = None
    display_order: int = 1

class WritingCreate(WritingBase):
    pass

class WritingUpdate(BaseModel):
    writing_question: Optional[str] = None
    image_url: Optional[str] = None
    display_order: Optional[int] = None

class Writing(WritingBase):
    id: int
    exam_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ===== Speaking =====

class SpeakingBase(BaseModel):
    speaking_question: str
    speaking_type: Optional[str] = None
    display_order: int = 1

class SpeakingCreate(SpeakingBase):
    pass

class SpeakingUpdate(BaseModel):
    speaking_question: Optional[str] = None
    speaking_type: Optional[str] = None
    display_order: Optional[int] = None

class Speaking(SpeakingBase):
    id: int
    exam_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
