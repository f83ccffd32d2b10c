from sqlalchemy import Column, Integer, DateTime, ForeignKey, Float, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class WritingFeedback(Base):
    __tablename__ = "writing_feedbacks"
    __table_args__ = (UniqueConstraint("attempt_id", "writing_id", name="uq_writing_feedback_attempt_skill"),)

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    writing_id = Column(Integer, ForeignKey("writings.id"), nullable=False)
    task_achievement = Column(Float, nullable=True)
    coherence_cohesion = Column(Float, nullable=True)
    lexical_resource = Column(Float, nullable=True)
    grammar_accuracy = Column(Float, nullable=True)
    overall = Column(Float, nullable=False)
    feedback_json = Column(Text, nullable=True)  # raw AI analysis
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    attempt = relationship("ExamAttempt", back_populates="writing_feedbacks")
    writing = relationship("Writing")
