from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.exam_attempt import ExamAttemptSummary
from app.schemas.response import APIResponse
from app.schemas.stats import BandSummary
from app.schemas.user import PasswordChange, User, UserContext, UserUpdate
from app.services.exam_attempt import exam_attempt_service
from app.services.stats import stats_service
from app.services.user import user_service
from app.utils import deps

router = APIRouter()

@router.get("/me", response_model=APIResponse[User])
def read_users_me(context: UserContext = Depends(deps.get_current_user_with_context)):
    return APIResponse(message="User profile fetched successfully", data=context.user)

@router.put("/me", response_model=APIResponse[User])
def update_user_me(
    *,
    db: Session = Depends(deps.get_transactional_db),
    user_in: UserUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    updated_user = user_service.update_profile(db, user_id=context.user.id, update_data=user_in)
    return APIResponse(message="User profile updated successfully", data=updated_user)

@router.post("/me/change-password", response_model=APIResponse[None])
def change_password(
    *,
    db: Session = Depends(deps.get_transactional_db),
    request: PasswordChange,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    user_service.change_password(
        db, user_id=context.user.id, old_password=request.old_password, new_password=request.new_password
    )
    return APIResponse(message="Password changed successfully")

@router.get("/me/attempts", response_model=APIResponse[List[ExamAttemptSummary]])
def get_my_attempts(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100
):
    attempts = exam_attempt_service.list_user_attempts(db, user_id=context.user.id, current_user_context=context,
                                                       skip=skip, limit=limit)
    return APIResponse(message="Exam attempts retrieved successfully", data=attempts)

@router.get("/me/bands", response_model=APIResponse[BandSummary])
def get_my_bands(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Band dashboard: per-skill and overall bands of scored attempts."""
    summary = stats_service.get_band_summary(db, user_id=context.user.id, current_user_context=context)
    return APIResponse(message="Band summary retrieved successfully", data=summary)
