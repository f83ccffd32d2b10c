from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.vocab_group import VocabGroup
from app.models.word import Word
from app.schemas.vocabulary import VocabGroupCreate, VocabGroupUpdate, WordCreate, WordUpdate

class CRUDVocabGroup(CRUDBase[VocabGroup, VocabGroupCreate, VocabGroupUpdate]):
    def get(self, db: Session, id: int) -> Optional[VocabGroup]:
        return db.query(VocabGroup).options(selectinload(VocabGroup.words)).filter(VocabGroup.id == id).first()

    def get_all_by_user(self, db: Session, *, user_id: int) -> List[VocabGroup]:
        return (
            db.query(VocabGroup)
            .options(selectinload(VocabGroup.words))
            .filter(VocabGroup.user_id == user_id)
            .order_by(VocabGroup.id)
            .all()
        )

    def get_by_user_and_name(self, db: Session, *, user_id: int, name: str) -> Optional[VocabGroup]:
        return (
            db.query(VocabGroup)
            .filter(VocabGroup.user_id == user_id, func.lower(VocabGroup.name) == name.lower())
            .first()
        )


class CRUDWord(CRUDBase[Word, WordCreate, WordUpdate]):
    def get_by_group_and_term(self, db: Session, *, group_id: int, term: str) -> Optional[Word]:
        return (
            db.query(Word)
            .filter(Word.group_id == group_id, func.lower(Word.term) == term.lower())
            .first()
        )


vocab_group = CRUDVocabGroup(VocabGroup)
word = CRUDWord(Word)
