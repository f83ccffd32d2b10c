from collections import defaultdict
from typing import Dict, List
from sqlalchemy.orm import Session

from app.core.constants import ExamAttemptStatusEnum, ExamTypeEnum
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.schemas.stats import BandSummary, SkillBand
from app.schemas.user import UserContext
from app.services.band import mean, overall_band, skill_band
from app.utils.permission import PermissionHelper as permission_helper


class StatsService:

    def _skill(self, scores: List[float]) -> SkillBand:
        return SkillBand(
            band=skill_band(scores),
            attempts=len(scores),
            average=float(mean(scores)),
        )

    def get_band_summary(self, db: Session, user_id: int, current_user_context: UserContext) -> BandSummary:
        """Per-skill and overall bands across the user's scored attempts.

        Attempts still waiting for AI grading, and attempts whose grading
        failed, are counted separately and never enter an average.
        """
        permission_helper.require_owner_or_staff(current_user_context, user_id, "You can only view your own results.")

        scores: Dict[ExamTypeEnum, List[float]] = defaultdict(list)
        pending = failed = 0
        for exam_type, attempt_status, total_score in crud_exam_attempt.get_submitted_with_exam_type(db, user_id=user_id):
            if attempt_status == ExamAttemptStatusEnum.GRADED and total_score is not None:
                scores[ExamTypeEnum(exam_type)].append(total_score)
            elif attempt_status == ExamAttemptStatusEnum.GRADING_FAILED:
                failed += 1
            elif attempt_status == ExamAttemptStatusEnum.PENDING_AI:
                pending += 1

        reading = self._skill(scores[ExamTypeEnum.READING])
        listening = self._skill(scores[ExamTypeEnum.LISTENING])
        writing = self._skill(scores[ExamTypeEnum.WRITING])
        speaking = self._skill(scores[ExamTypeEnum.SPEAKING])

        return BandSummary(
            user_id=user_id,
            reading=reading,
            listening=listening,
            writing=writing,
            speaking=speaking,
            overall=overall_band(reading.band, listening.band, writing.band, speaking.band),
            pending_attempts=pending,
            failed_attempts=failed,
        )


stats_service = StatsService()
