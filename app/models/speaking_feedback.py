from sqlalchemy import Column, Integer, DateTime, ForeignKey, Float, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class SpeakingFeedback(Base):
    __tablename__ = "speaking_feedbacks"
    __table_args__ = (UniqueConstraint("attempt_id", "speaking_id", name="uq_speaking_feedback_attempt_skill"),)

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    speaking_id = Column(Integer, ForeignKey("speakings.id"), nullable=False)
    pronunciation = Column(Float, nullable=True)
    fluency = Column(Float, nullable=True)
    lexical_resource = Column(Float, nullable=True)
    grammar_accuracy = Column(Float, nullable=True)
    coherence = Column(Float, nullable=True)
    overall = Column(Float, nullable=False)
    transcript = Column(Text, nullable=True)
    feedback_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    attempt = relationship("ExamAttempt", back_populates="speaking_feedbacks")
    speaking = relationship("Speaking")
