from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

class VocabGroupCreate(BaseModel):
    name: str

    @field_validator("name")
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Group name cannot be empty")
        return v.strip()

class VocabGroupUpdate(VocabGroupCreate):
    pass

class WordBase(BaseModel):
    term: str
    meaning: Optional[str] = None
    phonetic: Optional[str] = None
    example: Optional[str] = None
    audio_url: Optional[str] = None

    @field_validator("term")
    def term_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Word cannot be empty")
        return v.strip()

class WordCreate(WordBase):
    pass

class WordUpdate(BaseModel):
    term: Optional[str] = None
    meaning: Optional[str] = None
    phonetic: Optional[str] = None
    example: Optional[str] = None
    audio_url: Optional[str] = None

class Word(WordBase):
    id: int
    group_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class VocabGroup(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: Optional[datetime] = None
    words: List[Word] = []

    model_config = ConfigDict(from_attributes=True)

class DictionaryEntry(BaseModel):
    term: str
    phonetic: Optional[str] = None
    audio_url: Optional[str] = None
    meanings: List[str] = []
    examples: List[str] = []
