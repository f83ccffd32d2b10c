import logging
from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.constants import ExamTypeEnum
from app.crud.exam import exam as crud_exam
from app.crud.skill import reading as crud_reading, listening as crud_listening, writing as crud_writing, speaking as crud_speaking
from app.schemas.user import UserContext
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

SECTION_CRUD = {
    ExamTypeEnum.READING: crud_reading,
    ExamTypeEnum.LISTENING: crud_listening,
    ExamTypeEnum.WRITING: crud_writing,
    ExamTypeEnum.SPEAKING: crud_speaking,
}


class SkillService:
    """Reading passages, listening parts, writing tasks and speaking questions of an exam.

    A section always matches its exam's type: a Reading exam only holds
    reading sections.
    """

    def _get_exam_of_kind(self, db: Session, exam_id: int, kind: ExamTypeEnum):
        exam = crud_exam.get(db, id=exam_id)
        if not exam:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found.")
        if ExamTypeEnum(exam.exam_type) != kind:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Exam {exam_id} is a {exam.exam_type.value} exam and cannot hold {kind.value.lower()} sections."
            )
        return exam

    def _get_section(self, db: Session, kind: ExamTypeEnum, exam_id: int, section_id: int):
        section = SECTION_CRUD[kind].get_by_exam_and_id(db, exam_id=exam_id, id=section_id)
        if not section:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind.value} section not found.")
        return section

    def get_sections(self, db: Session, kind: ExamTypeEnum, exam_id: int, current_user_context: UserContext) -> List:
        self._get_exam_of_kind(db, exam_id, kind)
        return SECTION_CRUD[kind].get_by_exam(db, exam_id=exam_id)

    def get_section(self, db: Session, kind: ExamTypeEnum, exam_id: int, section_id: int,
                    current_user_context: UserContext):
        return self._get_section(db, kind, exam_id, section_id)

    def create_section(self, db: Session, kind: ExamTypeEnum, exam_id: int, section_in, current_user_context: UserContext):
        permission_helper.require_admin(current_user_context, "Only admins can manage exam sections.")
        self._get_exam_of_kind(db, exam_id, kind)
        data = section_in.model_dump()
        data["exam_id"] = exam_id
        section = SECTION_CRUD[kind].create(db, obj_in=data, commit=False)
        logger.info(f"{kind.value} section {section.id} added to exam {exam_id}")
        return section

    def update_section(self, db: Session, kind: ExamTypeEnum, exam_id: int, section_id: int, section_in,
                       current_user_context: UserContext):
        permission_helper.require_admin(current_user_context, "Only admins can manage exam sections.")
        section = self._get_section(db, kind, exam_id, section_id)
        return SECTION_CRUD[kind].update(db, db_obj=section, obj_in=section_in, commit=False)

    def delete_section(self, db: Session, kind: ExamTypeEnum, exam_id: int, section_id: int,
                       current_user_context: UserContext):
        permission_helper.require_admin(current_user_context, "Only admins can manage exam sections.")
        section = self._get_section(db, kind, exam_id, section_id)
        return SECTION_CRUD[kind].delete(db, id=section.id, commit=False)

    def can_see_answer_keys(self, current_user_context: UserContext) -> bool:
        return permission_helper.is_admin(current_user_context)


skill_service = SkillService()
