from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ExamTypeEnum, GradingJobStatusEnum

class GradingJob(Base):
    """One queued AI grading request for a single (attempt, skill) pair."""
    __tablename__ = "grading_jobs"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, index=True)
    skill_id = Column(Integer, nullable=False)
    exam_type = Column(Enum(ExamTypeEnum), nullable=False)
    question = Column(Text, nullable=True)
    answer_text = Column(Text, nullable=True)
    audio_url = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    status = Column(Enum(GradingJobStatusEnum), nullable=False, default=GradingJobStatusEnum.QUEUED, index=True)
    error = Column(Text, nullable=True)
    tries = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    attempt = relationship("ExamAttempt", back_populates="grading_jobs")
