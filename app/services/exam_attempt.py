import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import UNANSWERED, ExamAttemptStatusEnum, ExamTypeEnum, GradingJobStatusEnum
from app.crud.exam import exam as crud_exam
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.grading_job import grading_job as crud_grading_job
from app.crud.skill import reading as crud_reading, listening as crud_listening, writing as crud_writing, speaking as crud_speaking
from app.models.exam import Exam
from app.models.exam_attempt import ExamAttempt
from app.schemas.exam import Exam as ExamSchema
from app.schemas.exam_attempt import (
    AnswerGroup as AnswerGroupSchema,
    ExamAttempt as ExamAttemptSchema,
    ExamAttemptDetail,
    ExamAttemptSubmit,
    ExamAttemptSummary,
    SkillResult as SkillResultSchema,
)
from app.schemas.feedback import GradingJob as GradingJobSchema, SpeakingFeedback, WritingFeedback
from app.schemas.user import UserContext
from app.services.answer_normalizer import AnswerGroup, answers_to_tokens, parse_answer_groups, serialize_answer_groups
from app.services.grading import grading_engine
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

SKILL_CRUD = {
    ExamTypeEnum.READING: crud_reading,
    ExamTypeEnum.LISTENING: crud_listening,
    ExamTypeEnum.WRITING: crud_writing,
    ExamTypeEnum.SPEAKING: crud_speaking,
}


def _answered(tokens: List[str]) -> List[str]:
    return [t for t in tokens if t and t != UNANSWERED]


class ExamAttemptService:

    def _get_exam(self, db: Session, exam_id: int) -> Exam:
        exam = crud_exam.get(db, id=exam_id)
        if not exam:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found.")
        return exam

    def _get_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam attempt not found.")
        return attempt

    def _sections(self, db: Session, exam: Exam):
        return SKILL_CRUD[ExamTypeEnum(exam.exam_type)].get_by_exam(db, exam_id=exam.id)

    def _require_attempt_ownership_and_started(self, current_user_context: UserContext, attempt: ExamAttempt):
        if attempt.user_id != current_user_context.user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only submit answers for your own attempts."
            )

        if attempt.status != ExamAttemptStatusEnum.STARTED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Exam attempt {attempt.id} was already submitted (status: {attempt.status.value})."
            )

    def _to_answer_groups(self, submission: ExamAttemptSubmit) -> List[AnswerGroup]:
        return [AnswerGroup(skill_id=g.skill_id, answers=answers_to_tokens(g.answers)) for g in submission.answers]

    def _grade_automatically(self, db: Session, attempt: ExamAttempt, exam: Exam, groups: List[AnswerGroup]) -> dict:
        summary = grading_engine.grade(exam.exam_type, self._sections(db, exam), groups)
        logger.info(
            f"Attempt {attempt.id} graded: {summary.correct}/{summary.total} correct, band {summary.band}"
        )
        return {
            "status": ExamAttemptStatusEnum.GRADED,
            "total_score": summary.band,
            "correct_count": summary.correct,
            "total_questions": summary.total,
            "accuracy": summary.accuracy,
        }

    def _queue_ai_grading(self, db: Session, attempt: ExamAttempt, exam: Exam, groups: List[AnswerGroup]) -> dict:
        exam_type = ExamTypeEnum(exam.exam_type)
        answers_by_skill = {g.skill_id: _answered(g.answers) for g in groups}

        queued = 0
        for task in self._sections(db, exam):
            tokens = answers_by_skill.get(task.id)
            if not tokens:
                continue

            job = {
                "attempt_id": attempt.id,
                "skill_id": task.id,
                "exam_type": exam_type,
                "status": GradingJobStatusEnum.QUEUED,
            }
            if exam_type == ExamTypeEnum.WRITING:
                job.update(question=task.writing_question, answer_text="\n".join(tokens), image_url=task.image_url)
            else:
                audio = [t for t in tokens if t.lower().startswith(("http://", "https://"))]
                spoken = [t for t in tokens if t not in audio]
                job.update(
                    question=task.speaking_question,
                    answer_text=" ".join(spoken) or None,
                    audio_url=audio[0] if audio else None,
                )
            crud_grading_job.create(db, obj_in=job, commit=False)
            queued += 1

        if not queued:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Answer at least one {exam_type.value.lower()} task before submitting."
            )

        logger.info(f"Attempt {attempt.id} queued {queued} task(s) for AI grading")
        return {"status": ExamAttemptStatusEnum.PENDING_AI, "total_score": None}

    def start_attempt(self, db: Session, exam_id: int, current_user_context: UserContext,
                      started_at: Optional[datetime] = None) -> ExamAttempt:
        exam = self._get_exam(db, exam_id)
        attempt_data = {
            "user_id": current_user_context.user.id,
            "exam_id": exam.id,
            "status": ExamAttemptStatusEnum.STARTED,
            "started_at": started_at or datetime.now(timezone.utc),
        }
        attempt = crud_exam_attempt.create(db, obj_in=attempt_data, commit=False)
        logger.info(f"User {current_user_context.user.id} started attempt {attempt.id} on exam {exam.id}")
        return attempt

    def submit_attempt(self, db: Session, attempt_id: int, submission: ExamAttemptSubmit,
                       current_user_context: UserContext) -> ExamAttempt:
        attempt = crud_exam_attempt.get_for_update(db, id=attempt_id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam attempt not found.")

        self._require_attempt_ownership_and_started(current_user_context, attempt)

        exam = self._get_exam(db, attempt.exam_id)
        groups = self._to_answer_groups(submission)

        crud_exam_attempt.update(db, db_obj=attempt, obj_in={
            "answer_text": serialize_answer_groups(groups),
            "submitted_at": datetime.now(timezone.utc),
        }, commit=False)

        if ExamTypeEnum(exam.exam_type).is_auto_graded:
            result = self._grade_automatically(db, attempt, exam, groups)
        else:
            result = self._queue_ai_grading(db, attempt, exam, groups)

        crud_exam_attempt.update(db, db_obj=attempt, obj_in=result, commit=False)
        return self._get_attempt(db, attempt.id)

    def submit_exam(self, db: Session, exam_id: int, submission: ExamAttemptSubmit,
                    current_user_context: UserContext) -> ExamAttempt:
        """Start and submit an attempt in one step."""
        attempt = self.start_attempt(db, exam_id, current_user_context, started_at=submission.started_at)
        return self.submit_attempt(db, attempt.id, submission, current_user_context)

    def get_attempt_detail(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamAttemptDetail:
        attempt = self._get_attempt(db, attempt_id)
        permission_helper.require_owner_or_staff(
            current_user_context, attempt.user_id, "You can only view your own exam attempts."
        )

        groups = parse_answer_groups(attempt.answer_text)
        skill_results = []
        if attempt.status == ExamAttemptStatusEnum.GRADED and ExamTypeEnum(attempt.exam.exam_type).is_auto_graded:
            summary = grading_engine.grade(attempt.exam.exam_type, self._sections(db, attempt.exam), groups)
            skill_results = [SkillResultSchema(skill_id=r.skill_id, correct=r.correct, total=r.total) for r in summary.skills]

        return ExamAttemptDetail(
            **ExamAttemptSchema.model_validate(attempt).model_dump(exclude={"score"}),
            exam=ExamSchema.model_validate(attempt.exam),
            answers=[AnswerGroupSchema(skill_id=g.skill_id, answers=g.answers) for g in groups],
            skill_results=skill_results,
            writing_feedbacks=[WritingFeedback.model_validate(f) for f in attempt.writing_feedbacks],
            speaking_feedbacks=[SpeakingFeedback.model_validate(f) for f in attempt.speaking_feedbacks],
            grading_jobs=[GradingJobSchema.model_validate(j) for j in attempt.grading_jobs],
        )

    def _summaries(self, attempts: List[ExamAttempt]) -> List[ExamAttemptSummary]:
        return [
            ExamAttemptSummary(
                **ExamAttemptSchema.model_validate(a).model_dump(exclude={"score"}),
                exam_name=a.exam.exam_name if a.exam else None,
                exam_type=ExamTypeEnum(a.exam.exam_type).value if a.exam else None,
            )
            for a in attempts
        ]

    def list_user_attempts(self, db: Session, user_id: int, current_user_context: UserContext,
                           skip: int = 0, limit: int = 100) -> List[ExamAttemptSummary]:
        permission_helper.require_owner_or_staff(
            current_user_context, user_id, "You can only view your own exam attempts."
        )
        return self._summaries(crud_exam_attempt.get_all_by_user(db, user_id=user_id, skip=skip, limit=limit))

    def list_exam_attempts(self, db: Session, exam_id: int, current_user_context: UserContext) -> List[ExamAttemptSummary]:
        """The current user's attempts on one exam, newest first."""
        self._get_exam(db, exam_id)
        attempts = crud_exam_attempt.get_by_user_and_exam(db, user_id=current_user_context.user.id, exam_id=exam_id)
        return self._summaries(attempts)


exam_attempt_service = ExamAttemptService()
