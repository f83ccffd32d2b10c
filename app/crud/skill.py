from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase, ModelType, CreateSchemaType, UpdateSchemaType
from app.models.reading import Reading
from app.models.listening import Listening
from app.models.writing import Writing
from app.models.speaking import Speaking
from app.schemas.skill import (
    ReadingCreate, ReadingUpdate, ListeningCreate, ListeningUpdate,
    WritingCreate, WritingUpdate, SpeakingCreate, SpeakingUpdate,
)

class CRUDSkill(CRUDBase[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Skill sections all hang off an exam and are shown in display order."""

    def get_by_exam(self, db: Session, *, exam_id: int) -> List[ModelType]:
        return (
            db.query(self.model)
            .filter(self.model.exam_id == exam_id)
            .order_by(self.model.display_order, self.model.id)
            .all()
        )

    def get_by_exam_and_id(self, db: Session, *, exam_id: int, id: int):
        return (
            db.query(self.model)
            .filter(self.model.exam_id == exam_id, self.model.id == id)
            .first()
        )


class CRUDReading(CRUDSkill[Reading, ReadingCreate, ReadingUpdate]):
    pass


class CRUDListening(CRUDSkill[Listening, ListeningCreate, ListeningUpdate]):
    pass


class CRUDWriting(CRUDSkill[Writing, WritingCreate, WritingUpdate]):
    pass


class CRUDSpeaking(CRUDSkill[Speaking, SpeakingCreate, SpeakingUpdate]):
    pass


reading = CRUDReading(Reading)
listening = CRUDListening(Listening)
writing = CRUDWriting(Writing)
speaking = CRUDSpeaking(Speaking)
