from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.core.constants import ExamTypeEnum
from app.crud.base import CRUDBase
from app.models.exam import Exam
from app.schemas.exam import ExamCreate, ExamUpdate

class CRUDExam(CRUDBase[Exam, ExamCreate, ExamUpdate]):

    def get_with_sections(self, db: Session, id: int) -> Optional[Exam]:
        return (
            db.query(Exam)
            .options(
                selectinload(Exam.readings),
                selectinload(Exam.listenings),
                selectinload(Exam.writings),
                selectinload(Exam.speakings),
            )
            .filter(Exam.id == id)
            .first()
        )

    def get_by_type(self, db: Session, *, exam_type: Optional[ExamTypeEnum] = None, skip: int = 0, limit: int = 100) -> List[Exam]:
        query = db.query(Exam)
        if exam_type:
            query = query.filter(Exam.exam_type == exam_type)
        return query.order_by(Exam.created_at.desc(), Exam.id.desc()).offset(skip).limit(limit).all()


exam = CRUDExam(Exam)
