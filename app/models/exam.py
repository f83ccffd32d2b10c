from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ExamTypeEnum

class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    exam_name = Column(String, nullable=False)
    exam_type = Column(Enum(ExamTypeEnum), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    readings = relationship("Reading", back_populates="exam", cascade="all, delete-orphan", order_by="Reading.display_order")
    listenings = relationship("Listening", back_populates="exam", cascade="all, delete-orphan", order_by="Listening.display_order")
    writings = relationship("Writing", back_populates="exam", cascade="all, delete-orphan", order_by="Writing.display_order")
    speakings = relationship("Speaking", back_populates="exam", cascade="all, delete-orphan", order_by="Speaking.display_order")
    attempts = relationship("ExamAttempt", back_populates="exam", cascade="all, delete-orphan")
