from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.core.constants import ExamAttemptStatusEnum
from app.crud.base import CRUDBase
from app.models.exam import Exam
from app.models.exam_attempt import ExamAttempt

class CRUDExamAttempt(CRUDBase[ExamAttempt, dict, dict]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            selectinload(ExamAttempt.exam),
            selectinload(ExamAttempt.writing_feedbacks),
            selectinload(ExamAttempt.speaking_feedbacks),
            selectinload(ExamAttempt.grading_jobs)
        )

    def get(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def get_for_update(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return (
            db.query(ExamAttempt)
            .filter(ExamAttempt.id == id)
            .with_for_update()
            .first()
        )

    def get_by_user_and_exam(self, db: Session, user_id: int, exam_id: int) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .filter(ExamAttempt.exam_id == exam_id)
            .order_by(ExamAttempt.started_at.desc(), ExamAttempt.id.desc())
            .all()
        )

    def get_all_by_user(self, db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.user_id == user_id)
            .order_by(ExamAttempt.started_at.desc(), ExamAttempt.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_submitted_with_exam_type(self, db: Session, user_id: int) -> List[tuple]:
        """(exam_type, status, total_score) for every submitted attempt of a user."""
        return (
            db.query(Exam.exam_type, ExamAttempt.status, ExamAttempt.total_score)
            .join(Exam, Exam.id == ExamAttempt.exam_id)
            .filter(
                ExamAttempt.user_id == user_id,
                ExamAttempt.status != ExamAttemptStatusEnum.STARTED
            )
            .all()
        )


exam_attempt = CRUDExamAttempt(ExamAttempt)
