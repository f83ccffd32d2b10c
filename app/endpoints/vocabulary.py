from typing import List
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.schemas.vocabulary import (
    DictionaryEntry, VocabGroup, VocabGroupCreate, VocabGroupUpdate, Word, WordCreate, WordUpdate,
)
from app.services.dictionary import dictionary_service
from app.services.vocabulary import vocabulary_service
from app.utils import deps

router = APIRouter()

class DictionaryWordRequest(BaseModel):
    term: str


@router.get("/lookup/{term}", response_model=APIResponse[DictionaryEntry])
async def lookup_word(
    term: str,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Dictionary lookup. 404 for unknown words, 502 when the dictionary is down."""
    entry = await dictionary_service.lookup(term)
    return APIResponse(message="Dictionary entry retrieved successfully", data=entry)


@router.get("/groups", response_model=APIResponse[List[VocabGroup]])
def get_groups(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    groups = vocabulary_service.list_groups(db, current_user_context=context)
    return APIResponse(message="Vocabulary groups retrieved successfully", data=[VocabGroup.model_validate(g) for g in groups])


@router.post("/groups", response_model=APIResponse[VocabGroup], status_code=status.HTTP_201_CREATED)
def create_group(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_in: VocabGroupCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    group = vocabulary_service.create_group(db, group_in=group_in, current_user_context=context)
    return APIResponse(message="Vocabulary group created successfully", data=VocabGroup.model_validate(group))


@router.get("/groups/{group_id}", response_model=APIResponse[VocabGroup])
def get_group(
    *,
    db: Session = Depends(deps.get_db),
    group_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    group = vocabulary_service.get_group(db, group_id=group_id, current_user_context=context)
    return APIResponse(message="Vocabulary group retrieved successfully", data=VocabGroup.model_validate(group))


@router.put("/groups/{group_id}", response_model=APIResponse[VocabGroup])
def rename_group(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    group_in: VocabGroupUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    group = vocabulary_service.rename_group(db, group_id=group_id, group_in=group_in, current_user_context=context)
    return APIResponse(message="Vocabulary group updated successfully", data=VocabGroup.model_validate(group))


@router.delete("/groups/{group_id}", response_model=APIResponse[VocabGroup])
def delete_group(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    group = vocabulary_service.delete_group(db, group_id=group_id, current_user_context=context)
    return APIResponse(message="Vocabulary group deleted successfully", data=VocabGroup.model_validate(group))


@router.post("/groups/{group_id}/words", response_model=APIResponse[Word], status_code=status.HTTP_201_CREATED)
def add_word(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    word_in: WordCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    word = vocabulary_service.add_word(db, group_id=group_id, word_in=word_in, current_user_context=context)
    return APIResponse(message="Word added successfully", data=Word.model_validate(word))


@router.post("/groups/{group_id}/words/from-dictionary", response_model=APIResponse[Word],
             status_code=status.HTTP_201_CREATED)
async def add_word_from_dictionary(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    request: DictionaryWordRequest,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    word = await vocabulary_service.add_word_from_dictionary(db, group_id=group_id, term=request.term,
                                                             current_user_context=context)
    return APIResponse(message="Word added successfully", data=Word.model_validate(word))


@router.put("/groups/{group_id}/words/{word_id}", response_model=APIResponse[Word])
def update_word(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    word_id: int,
    word_in: WordUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    word = vocabulary_service.update_word(db, group_id=group_id, word_id=word_id, word_in=word_in,
                                          current_user_context=context)
    return APIResponse(message="Word updated successfully", data=Word.model_validate(word))


@router.delete("/groups/{group_id}/words/{word_id}", response_model=APIResponse[Word])
def delete_word(
    *,
    db: Session = Depends(deps.get_transactional_db),
    group_id: int,
    word_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    word = vocabulary_service.delete_word(db, group_id=group_id, word_id=word_id, current_user_context=context)
    return APIResponse(message="Word deleted successfully", data=Word.model_validate(word))
