from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Word(Base):
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("vocab_groups.id"), nullable=False, index=True)
    term = Column(String, nullable=False, index=True)
    meaning = Column(Text, nullable=True)
    phonetic = Column(String, nullable=True)
    example = Column(Text, nullable=True)
    audio_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    group = relationship("VocabGroup", back_populates="words")
