from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.constants import RoleEnum
from app.schemas.exam_attempt import ExamAttemptSummary
from app.schemas.stats import BandSummary
from app.schemas.user import User as UserSchema, UserContext, UserStatusUpdate
from app.services.exam_attempt import exam_attempt_service
from app.services.stats import stats_service
from app.services.user import user_service
from app.schemas.response import APIResponse
from app.utils import deps

router = APIRouter()

@router.get("/users", response_model=APIResponse[List[UserSchema]])
def get_all_users_admin(
    *,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_role(RoleEnum.ADMIN)),
    role: Optional[RoleEnum] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
):
    users = user_service.list_users(db, current_user_context=context, role=role, is_active=is_active,
                                    search=search, skip=skip, limit=limit)
    return APIResponse(message="Users retrieved successfully", data=users)

@router.patch("/users/{user_id}", response_model=APIResponse[UserSchema])
def update_user_status_admin(
    *,
    user_id: int,
    update_data: UserStatusUpdate,
    db: Session = Depends(deps.get_transactional_db),
    context: UserContext = Depends(deps.require_role(RoleEnum.ADMIN))
):
    """Activate, deactivate or change the role of an account."""
    updated_user = user_service.update_user_status(db, user_id=user_id, update_data=update_data,
                                                   current_user_context=context)
    return APIResponse(message="User updated successfully", data=updated_user)

@router.delete("/users/{user_id}", response_model=APIResponse[UserSchema])
def delete_user_admin(
    *,
    user_id: int,
    db: Session = Depends(deps.get_transactional_db),
    context: UserContext = Depends(deps.require_role(RoleEnum.ADMIN))
):
    deleted_user = user_service.delete_user_by_admin(db, user_id=user_id, current_user_context=context)
    return APIResponse(message="User deleted successfully", data=deleted_user)

@router.get("/users/{user_id}/attempts", response_model=APIResponse[List[ExamAttemptSummary]])
def get_user_attempts_admin(
    *,
    user_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_role(RoleEnum.ADMIN, RoleEnum.MODERATOR)),
    skip: int = 0,
    limit: int = 100
):
    attempts = exam_attempt_service.list_user_attempts(db, user_id=user_id, current_user_context=context,
                                                       skip=skip, limit=limit)
    return APIResponse(message="Exam attempts retrieved successfully", data=attempts)

@router.get("/users/{user_id}/bands", response_model=APIResponse[BandSummary])
def get_user_bands_admin(
    *,
    user_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.require_role(RoleEnum.ADMIN, RoleEnum.MODERATOR))
):
    summary = stats_service.get_band_summary(db, user_id=user_id, current_user_context=context)
    return APIResponse(message="Band summary retrieved successfully", data=summary)
