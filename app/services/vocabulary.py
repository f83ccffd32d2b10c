import logging
from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.crud.vocabulary import vocab_group as crud_vocab_group, word as crud_word
from app.models.vocab_group import VocabGroup
from app.models.word import Word
from app.schemas.user import UserContext
from app.schemas.vocabulary import VocabGroupCreate, VocabGroupUpdate, WordCreate, WordUpdate
from app.services.dictionary import dictionary_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class VocabularyService:

    def _get_group(self, db: Session, group_id: int, current_user_context: UserContext) -> VocabGroup:
        group = crud_vocab_group.get(db, id=group_id)
        if not group:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vocabulary group not found.")
        permission_helper.require_owner(current_user_context, group.user_id, "You can only manage your own vocabulary.")
        return group

    def _get_word(self, db: Session, group: VocabGroup, word_id: int) -> Word:
        word = crud_word.get(db, id=word_id)
        if not word or word.group_id != group.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Word not found in this group.")
        return word

    def _require_unique_name(self, db: Session, user_id: int, name: str):
        if crud_vocab_group.get_by_user_and_name(db, user_id=user_id, name=name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"You already have a group named '{name}'.")

    def _require_unique_term(self, db: Session, group_id: int, term: str):
        if crud_word.get_by_group_and_term(db, group_id=group_id, term=term):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"'{term}' is already in this group.")

    def list_groups(self, db: Session, current_user_context: UserContext) -> List[VocabGroup]:
        return crud_vocab_group.get_all_by_user(db, user_id=current_user_context.user.id)

    def get_group(self, db: Session, group_id: int, current_user_context: UserContext) -> VocabGroup:
        return self._get_group(db, group_id, current_user_context)

    def create_group(self, db: Session, group_in: VocabGroupCreate, current_user_context: UserContext) -> VocabGroup:
        self._require_unique_name(db, current_user_context.user.id, group_in.name)
        return crud_vocab_group.create(
            db, obj_in={"user_id": current_user_context.user.id, "name": group_in.name}, commit=False
        )

    def rename_group(self, db: Session, group_id: int, group_in: VocabGroupUpdate,
                     current_user_context: UserContext) -> VocabGroup:
        group = self._get_group(db, group_id, current_user_context)
        if group_in.name.lower() != group.name.lower():
            self._require_unique_name(db, current_user_context.user.id, group_in.name)
        return crud_vocab_group.update(db, db_obj=group, obj_in={"name": group_in.name}, commit=False)

    def delete_group(self, db: Session, group_id: int, current_user_context: UserContext) -> VocabGroup:
        group = self._get_group(db, group_id, current_user_context)
        return crud_vocab_group.delete(db, id=group.id, commit=False)

    def add_word(self, db: Session, group_id: int, word_in: WordCreate, current_user_context: UserContext) -> Word:
        group = self._get_group(db, group_id, current_user_context)
        self._require_unique_term(db, group.id, word_in.term)
        return crud_word.create(db, obj_in={**word_in.model_dump(), "group_id": group.id}, commit=False)

    async def add_word_from_dictionary(self, db: Session, group_id: int, term: str,
                                       current_user_context: UserContext) -> Word:
        """Look a word up and save it with its first meanings and example."""
        group = self._get_group(db, group_id, current_user_context)
        self._require_unique_term(db, group.id, term.strip())

        entry = await dictionary_service.lookup(term)
        word_in = WordCreate(
            term=entry.term,
            meaning="; ".join(entry.meanings[:3]) or None,
            phonetic=entry.phonetic,
            example=entry.examples[0] if entry.examples else None,
            audio_url=entry.audio_url,
        )
        return crud_word.create(db, obj_in={**word_in.model_dump(), "group_id": group.id}, commit=False)

    def update_word(self, db: Session, group_id: int, word_id: int, word_in: WordUpdate,
                    current_user_context: UserContext) -> Word:
        group = self._get_group(db, group_id, current_user_context)
        word = self._get_word(db, group, word_id)
        if word_in.term is not None:
            if not word_in.term.strip():
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Word cannot be empty")
            word_in.term = word_in.term.strip()
            if word_in.term.lower() != word.term.lower():
                self._require_unique_term(db, group.id, word_in.term)
        return crud_word.update(db, db_obj=word, obj_in=word_in, commit=False)

    def delete_word(self, db: Session, group_id: int, word_id: int, current_user_context: UserContext) -> Word:
        group = self._get_group(db, group_id, current_user_context)
        word = self._get_word(db, group, word_id)
        return crud_word.delete(db, id=word.id, commit=False)


vocabulary_service = VocabularyService()
