from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.constants import GradingJobStatusEnum
from app.crud.base import CRUDBase
from app.models.grading_job import GradingJob

class CRUDGradingJob(CRUDBase[GradingJob, dict, dict]):
    def get_queued(self, db: Session, *, limit: int = 10) -> List[GradingJob]:
        return (
            db.query(GradingJob)
            .filter(GradingJob.status == GradingJobStatusEnum.QUEUED)
            .order_by(GradingJob.created_at, GradingJob.id)
            .limit(limit)
            .all()
        )

    def get_by_attempt(self, db: Session, *, attempt_id: int) -> List[GradingJob]:
        return (
            db.query(GradingJob)
            .filter(GradingJob.attempt_id == attempt_id)
            .order_by(GradingJob.id)
            .all()
        )

    def get_by_attempt_and_skill(self, db: Session, *, attempt_id: int, skill_id: int) -> Optional[GradingJob]:
        return (
            db.query(GradingJob)
            .filter(GradingJob.attempt_id == attempt_id, GradingJob.skill_id == skill_id)
            .first()
        )


grading_job = CRUDGradingJob(GradingJob)
