import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.constants import ExamTypeEnum
from app.crud.exam import exam as crud_exam
from app.models.exam import Exam
from app.schemas.exam import ExamCreate, ExamUpdate
from app.schemas.user import UserContext
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class ExamService:

    def _get_or_404(self, db: Session, exam_id: int, with_sections: bool = False) -> Exam:
        exam = crud_exam.get_with_sections(db, id=exam_id) if with_sections else crud_exam.get(db, id=exam_id)
        if not exam:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found.")
        return exam

    def create_exam(self, db: Session, exam_in: ExamCreate, current_user_context: UserContext) -> Exam:
        permission_helper.require_admin(current_user_context, "Only admins can create exams.")
        new_exam = crud_exam.create(db, obj_in=exam_in.model_dump(), commit=False)
        logger.info(f"Exam {new_exam.id} ({new_exam.exam_type.value}) created by user {current_user_context.user.id}")
        return new_exam

    def get_exam(self, db: Session, exam_id: int, current_user_context: UserContext) -> Exam:
        return self._get_or_404(db, exam_id, with_sections=True)

    def get_all_exams(self, db: Session, current_user_context: UserContext, skip: int = 0, limit: int = 100,
                      exam_type: Optional[ExamTypeEnum] = None) -> List[Exam]:
        return crud_exam.get_by_type(db, exam_type=exam_type, skip=skip, limit=limit)

    def update_exam(self, db: Session, exam_id: int, exam_in: ExamUpdate, current_user_context: UserContext) -> Exam:
        permission_helper.require_admin(current_user_context, "Only admins can update exams.")
        exam = self._get_or_404(db, exam_id, with_sections=True)

        if exam_in.exam_type and exam_in.exam_type != exam.exam_type:
            has_sections = exam.readings or exam.listenings or exam.writings or exam.speakings
            if has_sections:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Cannot change the type of an exam that already has sections."
                )
        if exam_in.exam_name is not None and not exam_in.exam_name.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Exam name cannot be empty")

        return crud_exam.update(db, db_obj=exam, obj_in=exam_in, commit=False)

    def delete_exam(self, db: Session, exam_id: int, current_user_context: UserContext) -> Exam:
        permission_helper.require_admin(current_user_context, "Only admins can delete exams.")
        exam = self._get_or_404(db, exam_id)
        if exam.attempts:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete an exam that already has attempts."
            )
        crud_exam.delete(db, id=exam.id, commit=False)
        logger.info(f"Exam {exam_id} deleted by user {current_user_context.user.id}")
        return exam


exam_service = ExamService()
