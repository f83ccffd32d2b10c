from typing import List, Type
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.constants import ExamTypeEnum
from app.schemas.response import APIResponse
from app.schemas.skill import (
    Reading, ReadingCreate, ReadingPublic, ReadingUpdate,
    Listening, ListeningCreate, ListeningPublic, ListeningUpdate,
    Writing, WritingCreate, WritingUpdate,
    Speaking, SpeakingCreate, SpeakingUpdate,
)
from app.schemas.user import UserContext
from app.services.skill import skill_service
from app.utils import deps

router = APIRouter()


def register_section_routes(kind: ExamTypeEnum, path: str, create_schema: Type[BaseModel],
                            update_schema: Type[BaseModel], public_schema: Type[BaseModel],
                            full_schema: Type[BaseModel]):
    """CRUD routes for one kind of exam section under ``/{exam_id}/{path}``.

    Admins get ``full_schema`` (with the answer key), everyone else
    ``public_schema``.
    """
    label = kind.value

    def view(section, context: UserContext):
        schema = full_schema if skill_service.can_see_answer_keys(context) else public_schema
        return schema.model_validate(section)

    @router.get(f"/{{exam_id}}/{path}", response_model=APIResponse[List[full_schema]], name=f"list_{path}",
                response_model_exclude_unset=True)
    def list_sections(
        exam_id: int,
        db: Session = Depends(deps.get_db),
        context: UserContext = Depends(deps.get_current_user_with_context)
    ):
        sections = skill_service.get_sections(db, kind, exam_id=exam_id, current_user_context=context)
        return APIResponse(message=f"{label} sections retrieved successfully", data=[view(s, context) for s in sections])

    @router.get(f"/{{exam_id}}/{path}/{{section_id}}", response_model=APIResponse[full_schema], name=f"get_{path}",
                response_model_exclude_unset=True)
    def get_section(
        exam_id: int,
        section_id: int,
        db: Session = Depends(deps.get_db),
        context: UserContext = Depends(deps.get_current_user_with_context)
    ):
        section = skill_service.get_section(db, kind, exam_id=exam_id, section_id=section_id, current_user_context=context)
        return APIResponse(message=f"{label} section retrieved successfully", data=view(section, context))

    @router.post(f"/{{exam_id}}/{path}", response_model=APIResponse[full_schema], name=f"create_{path}",
                 status_code=status.HTTP_201_CREATED)
    def create_section(
        exam_id: int,
        section_in: create_schema,
        db: Session = Depends(deps.get_transactional_db),
        context: UserContext = Depends(deps.get_current_user_with_context)
    ):
        section = skill_service.create_section(db, kind, exam_id=exam_id, section_in=section_in, current_user_context=context)
        return APIResponse(message=f"{label} section created successfully", data=full_schema.model_validate(section))

    @router.put(f"/{{exam_id}}/{path}/{{section_id}}", response_model=APIResponse[full_schema], name=f"update_{path}")
    def update_section(
        exam_id: int,
        section_id: int,
        section_in: update_schema,
        db: Session = Depends(deps.get_transactional_db),
        context: UserContext = Depends(deps.get_current_user_with_context)
    ):
        section = skill_service.update_section(db, kind, exam_id=exam_id, section_id=section_id,
                                               section_in=section_in, current_user_context=context)
        return APIResponse(message=f"{label} section updated successfully", data=full_schema.model_validate(section))

    @router.delete(f"/{{exam_id}}/{path}/{{section_id}}", response_model=APIResponse[full_schema], name=f"delete_{path}")
    def delete_section(
        exam_id: int,
        section_id: int,
        db: Session = Depends(deps.get_transactional_db),
        context: UserContext = Depends(deps.get_current_user_with_context)
    ):
        section = skill_service.delete_section(db, kind, exam_id=exam_id, section_id=section_id, current_user_context=context)
        return APIResponse(message=f"{label} section deleted successfully", data=full_schema.model_validate(section))


register_section_routes(ExamTypeEnum.READING, "readings", ReadingCreate, ReadingUpdate, ReadingPublic, Reading)
register_section_routes(ExamTypeEnum.LISTENING, "listenings", ListeningCreate, ListeningUpdate, ListeningPublic, Listening)
register_section_routes(ExamTypeEnum.WRITING, "writings", WritingCreate, WritingUpdate, Writing, Writing)
register_section_routes(ExamTypeEnum.SPEAKING, "speakings", SpeakingCreate, SpeakingUpdate, Speaking, Speaking)
