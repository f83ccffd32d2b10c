from typing import List, Optional, Union
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from app.core.constants import ExamTypeEnum
from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.exam import Exam, ExamCreate, ExamDetail, ExamUpdate
from app.schemas.exam_attempt import ExamAttempt, ExamAttemptDetail, ExamAttemptSubmit, ExamAttemptSummary
from app.schemas.feedback import FeedbackCreate, SpeakingFeedback, WritingFeedback
from app.schemas.user import UserContext
from app.models.writing_feedback import WritingFeedback as WritingFeedbackModel
from app.services.exam import exam_service
from app.services.exam_attempt import exam_attempt_service
from app.services.feedback import feedback_service

router = APIRouter()


def _feedback_view(feedback) -> Union[WritingFeedback, SpeakingFeedback]:
    if isinstance(feedback, WritingFeedbackModel):
        return WritingFeedback.model_validate(feedback)
    return SpeakingFeedback.model_validate(feedback)


# ===== Attempts =====

@router.get("/attempts/{attempt_id}", response_model=APIResponse[ExamAttemptDetail])
def get_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Attempt with its answers, feedback and score state (scored, pending or failed)."""
    detail = exam_attempt_service.get_attempt_detail(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam attempt retrieved successfully", data=detail)


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[ExamAttempt])
def submit_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    submission: ExamAttemptSubmit,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = exam_attempt_service.submit_attempt(db, attempt_id=attempt_id, submission=submission,
                                                  current_user_context=context)
    return APIResponse(message="Exam attempt submitted successfully", data=ExamAttempt.model_validate(attempt))


@router.post("/attempts/{attempt_id}/feedback", response_model=APIResponse[Union[WritingFeedback, SpeakingFeedback]],
             status_code=status.HTTP_201_CREATED)
def attach_feedback(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    feedback_in: FeedbackCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Grader callback. Feedback that already exists for the task is a conflict."""
    feedback = feedback_service.attach_feedback(db, attempt_id=attempt_id, feedback_in=feedback_in,
                                                current_user_context=context)
    return APIResponse(message="Feedback attached successfully", data=_feedback_view(feedback))


@router.put("/attempts/{attempt_id}/feedback", response_model=APIResponse[Union[WritingFeedback, SpeakingFeedback]])
def replace_feedback(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    feedback_in: FeedbackCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    feedback = feedback_service.replace_feedback(db, attempt_id=attempt_id, feedback_in=feedback_in,
                                                 current_user_context=context)
    return APIResponse(message="Feedback replaced successfully", data=_feedback_view(feedback))


@router.post("/attempts/{attempt_id}/retry-grading", response_model=APIResponse[ExamAttempt])
def retry_grading(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = feedback_service.retry_grading(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Grading re-queued", data=ExamAttempt.model_validate(attempt))


# ===== Exams =====

@router.post("/", response_model=APIResponse[Exam], status_code=status.HTTP_201_CREATED)
def create_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_in: ExamCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    new_exam = exam_service.create_exam(db, exam_in=exam_in, current_user_context=context)
    return APIResponse(message="Exam created successfully", data=Exam.model_validate(new_exam))


@router.get("/", response_model=APIResponse[List[Exam]])
def get_all_exams(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100,
    exam_type: Optional[ExamTypeEnum] = Query(None)
):
    exams = exam_service.get_all_exams(db, current_user_context=context, skip=skip, limit=limit, exam_type=exam_type)
    return APIResponse(message="Exams retrieved successfully", data=[Exam.model_validate(e) for e in exams])


@router.get("/{exam_id}", response_model=APIResponse[ExamDetail])
def get_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Exam with its sections. Answer keys are left out."""
    exam = exam_service.get_exam(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Exam retrieved successfully", data=ExamDetail.model_validate(exam))


@router.put("/{exam_id}", response_model=APIResponse[Exam])
def update_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    exam_in: ExamUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    updated_exam = exam_service.update_exam(db, exam_id=exam_id, exam_in=exam_in, current_user_context=context)
    return APIResponse(message="Exam updated successfully", data=Exam.model_validate(updated_exam))


@router.delete("/{exam_id}", response_model=APIResponse[Exam])
def delete_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    deleted_exam = exam_service.delete_exam(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Exam deleted successfully", data=Exam.model_validate(deleted_exam))


@router.post("/{exam_id}/attempts", response_model=APIResponse[ExamAttempt], status_code=status.HTTP_201_CREATED)
def start_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = exam_attempt_service.start_attempt(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Exam attempt started successfully", data=ExamAttempt.model_validate(attempt))


@router.get("/{exam_id}/attempts", response_model=APIResponse[List[ExamAttemptSummary]])
def get_my_exam_attempts(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempts = exam_attempt_service.list_exam_attempts(db, exam_id=exam_id, current_user_context=context)
    return APIResponse(message="Exam attempts retrieved successfully", data=attempts)


@router.post("/{exam_id}/submit", response_model=APIResponse[ExamAttempt], status_code=status.HTTP_201_CREATED)
def submit_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    exam_id: int,
    submission: ExamAttemptSubmit,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Start and submit an attempt in one request."""
    attempt = exam_attempt_service.submit_exam(db, exam_id=exam_id, submission=submission, current_user_context=context)
    return APIResponse(message="Exam submitted successfully", data=ExamAttempt.model_validate(attempt))
