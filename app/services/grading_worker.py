import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import ExamTypeEnum, GradingJobStatusEnum
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.grading_job import grading_job as crud_grading_job
from app.models.grading_job import GradingJob
from app.schemas.feedback import FeedbackCreate
from app.services.ai_grading import AIFeedback, AIGradingClient, GradingFailed, ai_grading_client
from app.services.feedback import feedback_service

logger = logging.getLogger(__name__)


def to_feedback_create(skill_id: int, result: AIFeedback) -> FeedbackCreate:
    return FeedbackCreate(
        skill_id=skill_id,
        overall=result.overall,
        transcript=result.transcript,
        analysis=result.analysis,
        **result.criteria,
    )


class GradingWorker:
    """Drains queued GradingJobs through the AI grader.

    Each job is committed on its own so one bad job never rolls back the
    results of the others.
    """

    def __init__(self, client: Optional[AIGradingClient] = None):
        self.client = client or ai_grading_client

    async def _grade(self, job: GradingJob):
        if ExamTypeEnum(job.exam_type) == ExamTypeEnum.WRITING:
            return await self.client.grade_writing(job.question, job.answer_text or "", job.image_url)
        return await self.client.grade_speaking(job.question, job.answer_text, job.audio_url)

    async def process_job(self, db: Session, job: GradingJob) -> GradingJobStatusEnum:
        crud_grading_job.update(db, db_obj=job, obj_in={"tries": (job.tries or 0) + 1}, commit=False)
        outcome = await self._grade(job)

        if isinstance(outcome, GradingFailed):
            feedback_service.mark_job_failed(db, job, outcome.reason)
            db.commit()
            return GradingJobStatusEnum.FAILED

        attempt = crud_exam_attempt.get(db, id=job.attempt_id)
        try:
            feedback_service.record_feedback(db, attempt, to_feedback_create(job.skill_id, outcome))
        except HTTPException as e:
            db.rollback()
            if e.status_code == status.HTTP_409_CONFLICT:
                # feedback arrived through the callback while this job was in flight
                logger.info(f"Grading job {job.id} superseded by posted feedback: {e.detail}")
                crud_grading_job.update(db, db_obj=job, obj_in={"status": GradingJobStatusEnum.COMPLETED}, commit=False)
                feedback_service.refresh_attempt_status(db, attempt, ExamTypeEnum(job.exam_type))
                db.commit()
                return GradingJobStatusEnum.COMPLETED
            logger.warning(f"Could not store AI feedback for job {job.id}: {e.detail}")
            feedback_service.mark_job_failed(db, job, str(e.detail))
            db.commit()
            return GradingJobStatusEnum.FAILED

        db.commit()
        logger.info(f"Grading job {job.id} completed for attempt {job.attempt_id}, task {job.skill_id}")
        return GradingJobStatusEnum.COMPLETED

    async def run_once(self, db: Session, limit: int = 10) -> int:
        jobs = crud_grading_job.get_queued(db, limit=limit)
        for job in jobs:
            await self.process_job(db, job)
        return len(jobs)


grading_worker = GradingWorker()
