import json
import logging
from typing import List, Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import ExamAttemptStatusEnum, ExamTypeEnum, GradingJobStatusEnum
from app.crud.exam import exam as crud_exam
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.feedback import writing_feedback as crud_writing_feedback, speaking_feedback as crud_speaking_feedback
from app.crud.grading_job import grading_job as crud_grading_job
from app.crud.skill import writing as crud_writing, speaking as crud_speaking
from app.models.exam_attempt import ExamAttempt
from app.models.grading_job import GradingJob
from app.models.speaking_feedback import SpeakingFeedback
from app.models.writing_feedback import WritingFeedback
from app.schemas.feedback import FeedbackCreate
from app.schemas.user import UserContext
from app.services.band import mean, round_ielts, speaking_overall
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

FeedbackRow = Union[WritingFeedback, SpeakingFeedback]


class FeedbackService:

    def _get_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam attempt not found.")
        return attempt

    def _exam_type(self, db: Session, attempt: ExamAttempt) -> ExamTypeEnum:
        exam = attempt.exam or crud_exam.get(db, id=attempt.exam_id)
        if not exam:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found for this attempt.")
        return ExamTypeEnum(exam.exam_type)

    def _require_ai_graded_and_submitted(self, exam_type: ExamTypeEnum, attempt: ExamAttempt, replace: bool = False):
        if exam_type.is_auto_graded:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{exam_type.value} attempts are graded automatically and take no feedback."
            )
        if attempt.status == ExamAttemptStatusEnum.STARTED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot attach feedback to an attempt that has not been submitted."
            )
        # a graded attempt only changes through an explicit replace
        if attempt.status == ExamAttemptStatusEnum.GRADED and not replace:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Attempt {attempt.id} is already graded. Use PUT to replace existing feedback."
            )

    def _existing(self, db: Session, exam_type: ExamTypeEnum, attempt_id: int, skill_id: int) -> Optional[FeedbackRow]:
        crud = crud_writing_feedback if exam_type == ExamTypeEnum.WRITING else crud_speaking_feedback
        return crud.get_by_attempt_and_skill(db, attempt_id=attempt_id, skill_id=skill_id)

    def _feedback_values(self, exam_type: ExamTypeEnum, feedback_in: FeedbackCreate) -> dict:
        analysis = json.dumps(feedback_in.analysis, ensure_ascii=False) if feedback_in.analysis is not None else None

        if exam_type == ExamTypeEnum.WRITING:
            criteria = [
                feedback_in.task_achievement,
                feedback_in.coherence_cohesion,
                feedback_in.lexical_resource,
                feedback_in.grammar_accuracy,
            ]
            overall = feedback_in.overall
            if overall is None:
                if any(c is None for c in criteria):
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Writing feedback needs an overall band or all four criteria."
                    )
                overall = round_ielts(mean(criteria))
            return {
                "writing_id": feedback_in.skill_id,
                "task_achievement": feedback_in.task_achievement,
                "coherence_cohesion": feedback_in.coherence_cohesion,
                "lexical_resource": feedback_in.lexical_resource,
                "grammar_accuracy": feedback_in.grammar_accuracy,
                "overall": overall,
                "feedback_json": analysis,
            }

        criteria = [
            feedback_in.pronunciation,
            feedback_in.fluency,
            feedback_in.lexical_resource,
            feedback_in.grammar_accuracy,
        ]
        if all(c is not None for c in criteria):
            overall = speaking_overall(*criteria)
        elif feedback_in.overall is not None:
            overall = feedback_in.overall
        else:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Speaking feedback needs an overall band or all four criteria."
            )
        return {
            "speaking_id": feedback_in.skill_id,
            "pronunciation": feedback_in.pronunciation,
            "fluency": feedback_in.fluency,
            "lexical_resource": feedback_in.lexical_resource,
            "grammar_accuracy": feedback_in.grammar_accuracy,
            "coherence": feedback_in.fluency,
            "overall": overall,
            "transcript": feedback_in.transcript,
            "feedback_json": analysis,
        }

    def _feedbacks(self, db: Session, exam_type: ExamTypeEnum, attempt_id: int) -> List[FeedbackRow]:
        if exam_type == ExamTypeEnum.WRITING:
            return crud_writing_feedback.get_by_attempt(db, attempt_id=attempt_id)
        return crud_speaking_feedback.get_by_attempt(db, attempt_id=attempt_id)

    def refresh_attempt_status(self, db: Session, attempt: ExamAttempt, exam_type: ExamTypeEnum) -> ExamAttempt:
        """Recompute an AI-graded attempt's status from its jobs and feedback.

        Any failed job makes the whole attempt ``grading_failed``. Once every
        job has feedback the attempt is ``graded`` with the rounded mean of
        the task bands as its score.
        """
        jobs = crud_grading_job.get_by_attempt(db, attempt_id=attempt.id)
        feedbacks = self._feedbacks(db, exam_type, attempt.id)
        skill_key = "writing_id" if exam_type == ExamTypeEnum.WRITING else "speaking_id"
        graded_skills = {getattr(f, skill_key) for f in feedbacks}
        expected_skills = {j.skill_id for j in jobs} or graded_skills

        previous = attempt.status
        if any(j.status == GradingJobStatusEnum.FAILED for j in jobs):
            update = {"status": ExamAttemptStatusEnum.GRADING_FAILED, "total_score": None}
        elif expected_skills and expected_skills <= graded_skills:
            update = {
                "status": ExamAttemptStatusEnum.GRADED,
                "total_score": round_ielts(mean(f.overall for f in feedbacks)),
            }
        else:
            update = {"status": ExamAttemptStatusEnum.PENDING_AI, "total_score": None}

        attempt = crud_exam_attempt.update(db, db_obj=attempt, obj_in=update, commit=False)
        if attempt.status != previous:
            logger.info(f"Attempt {attempt.id} moved {previous.value} -> {attempt.status.value} (score={attempt.total_score})")
        return attempt

    def record_feedback(self, db: Session, attempt: ExamAttempt, feedback_in: FeedbackCreate,
                        replace: bool = False) -> FeedbackRow:
        """Store one task's feedback and settle the attempt. No permission checks."""
        exam_type = self._exam_type(db, attempt)
        self._require_ai_graded_and_submitted(exam_type, attempt, replace)

        skill_crud = crud_writing if exam_type == ExamTypeEnum.WRITING else crud_speaking
        if not skill_crud.get_by_exam_and_id(db, exam_id=attempt.exam_id, id=feedback_in.skill_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{exam_type.value} task {feedback_in.skill_id} does not belong to this exam."
            )

        values = self._feedback_values(exam_type, feedback_in)
        existing = self._existing(db, exam_type, attempt.id, feedback_in.skill_id)
        feedback_crud = crud_writing_feedback if exam_type == ExamTypeEnum.WRITING else crud_speaking_feedback

        if existing and not replace:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Feedback already exists for task {feedback_in.skill_id} of attempt {attempt.id}. Use PUT to replace it."
            )
        if replace and not existing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No feedback to replace for task {feedback_in.skill_id} of attempt {attempt.id}."
            )
        if existing:
            feedback = feedback_crud.update(db, db_obj=existing, obj_in=values, commit=False)
            logger.info(f"Replaced feedback for attempt {attempt.id}, task {feedback_in.skill_id}")
        else:
            feedback = feedback_crud.create(db, obj_in={"attempt_id": attempt.id, **values}, commit=False)

        job = crud_grading_job.get_by_attempt_and_skill(db, attempt_id=attempt.id, skill_id=feedback_in.skill_id)
        if job and job.status != GradingJobStatusEnum.COMPLETED:
            crud_grading_job.update(
                db, db_obj=job, obj_in={"status": GradingJobStatusEnum.COMPLETED, "error": None}, commit=False
            )

        self.refresh_attempt_status(db, attempt, exam_type)
        return feedback

    def mark_job_failed(self, db: Session, job: GradingJob, reason: str) -> GradingJob:
        job = crud_grading_job.update(
            db,
            db_obj=job,
            obj_in={"status": GradingJobStatusEnum.FAILED, "error": reason},
            commit=False
        )
        logger.warning(f"Grading job {job.id} (attempt {job.attempt_id}, task {job.skill_id}) failed: {reason}")
        attempt = self._get_attempt(db, job.attempt_id)
        self.refresh_attempt_status(db, attempt, ExamTypeEnum(job.exam_type))
        return job

    def attach_feedback(self, db: Session, attempt_id: int, feedback_in: FeedbackCreate,
                        current_user_context: UserContext) -> FeedbackRow:
        if not permission_helper.is_staff(current_user_context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only graders can attach feedback.")
        attempt = self._get_attempt(db, attempt_id)
        return self.record_feedback(db, attempt, feedback_in)

    def replace_feedback(self, db: Session, attempt_id: int, feedback_in: FeedbackCreate,
                         current_user_context: UserContext) -> FeedbackRow:
        if not permission_helper.is_staff(current_user_context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only graders can replace feedback.")
        attempt = self._get_attempt(db, attempt_id)
        return self.record_feedback(db, attempt, feedback_in, replace=True)

    def retry_grading(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamAttempt:
        """Re-queue the failed jobs of a ``grading_failed`` attempt."""
        attempt = self._get_attempt(db, attempt_id)
        permission_helper.require_owner_or_staff(current_user_context, attempt.user_id)

        if attempt.status != ExamAttemptStatusEnum.GRADING_FAILED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Only attempts whose grading failed can be retried."
            )

        for job in crud_grading_job.get_by_attempt(db, attempt_id=attempt.id):
            if job.status == GradingJobStatusEnum.FAILED:
                crud_grading_job.update(
                    db, db_obj=job, obj_in={"status": GradingJobStatusEnum.QUEUED, "error": None}, commit=False
                )

        logger.info(f"Re-queued failed grading jobs for attempt {attempt.id}")
        return self.refresh_attempt_status(db, attempt, self._exam_type(db, attempt))


feedback_service = FeedbackService()
