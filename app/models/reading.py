from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Reading(Base):
    __tablename__ = "readings"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    reading_content = Column(Text, nullable=False)
    reading_question = Column(Text, nullable=True)
    reading_type = Column(String, nullable=False, default="Markdown")
    question_html = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=1)
    correct_answer = Column(Text, nullable=True)  # JSON array or ","/";" separated
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exam = relationship("Exam", back_populates="readings")
