from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Listening(Base):
    __tablename__ = "listenings"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    listening_content = Column(Text, nullable=False)  # audio URL or transcript
    listening_question = Column(Text, nullable=True)
    listening_type = Column(String, nullable=False, default="Markdown")
    question_html = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=1)
    correct_answer = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    exam = relationship("Exam", back_populates="listenings")
