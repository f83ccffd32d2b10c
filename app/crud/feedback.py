from typing import List, Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.writing_feedback import WritingFeedback
from app.models.speaking_feedback import SpeakingFeedback

class CRUDWritingFeedback(CRUDBase[WritingFeedback, dict, dict]):
    def get_by_attempt_and_skill(self, db: Session, *, attempt_id: int, skill_id: int) -> Optional[WritingFeedback]:
        return (
            db.query(WritingFeedback)
            .filter(WritingFeedback.attempt_id == attempt_id, WritingFeedback.writing_id == skill_id)
            .first()
        )

    def get_by_attempt(self, db: Session, *, attempt_id: int) -> List[WritingFeedback]:
        return db.query(WritingFeedback).filter(WritingFeedback.attempt_id == attempt_id).all()


class CRUDSpeakingFeedback(CRUDBase[SpeakingFeedback, dict, dict]):
    def get_by_attempt_and_skill(self, db: Session, *, attempt_id: int, skill_id: int) -> Optional[SpeakingFeedback]:
        return (
            db.query(SpeakingFeedback)
            .filter(SpeakingFeedback.attempt_id == attempt_id, SpeakingFeedback.speaking_id == skill_id)
            .first()
        )

    def get_by_attempt(self, db: Session, *, attempt_id: int) -> List[SpeakingFeedback]:
        return db.query(SpeakingFeedback).filter(SpeakingFeedback.attempt_id == attempt_id).all()


writing_feedback = CRUDWritingFeedback(WritingFeedback)
speaking_feedback = CRUDSpeakingFeedback(SpeakingFeedback)
