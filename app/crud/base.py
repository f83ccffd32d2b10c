from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Shared data access for one model.

    Writes take ``commit``: services running inside a request transaction
    pass ``commit=False`` and only flush, the transaction commits once at
    the end of the request. Models with a ``deleted_at`` column are soft
    deleted and hidden from ``get``/``get_multi``.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def _live(self, query):
        if self.soft_deletes:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def _finish(self, db: Session, commit: bool):
        if commit:
            db.commit()
        else:
            db.flush()

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return self._live(db.query(self.model).filter(self.model.id == id)).first()

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[ModelType]:
        return self._live(db.query(self.model)).order_by(self.model.id).offset(skip).limit(limit).all()

    def create(self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]], commit: bool = True) -> ModelType:
        obj_in_data = obj_in if isinstance(obj_in, dict) else jsonable_encoder(obj_in)
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        self._finish(db, commit)
        db.refresh(db_obj)
        return db_obj

    def update(
        self, db: Session, *, db_obj: ModelType, obj_in: Union[UpdateSchemaType, Dict[str, Any]], commit: bool = True
    ) -> ModelType:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        self._finish(db, commit)
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, id: int, commit: bool = True) -> Optional[ModelType]:
        obj = db.get(self.model, id)
        if not obj:
            return None

        if self.soft_deletes:
            obj.deleted_at = datetime.now(timezone.utc)
            db.add(obj)
            self._finish(db, commit)
            db.refresh(obj)
        else:
            db.delete(obj)
            self._finish(db, commit)
        return obj
