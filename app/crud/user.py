from typing import Optional, List
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.crud.base import CRUDBase
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate

class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email, User.deleted_at == None).first()

    def get_by_email_with_soft_deleted(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def get_multi_filtered(
        self, db: Session, *, role: Optional[RoleEnum] = None, is_active: Optional[bool] = None,
        search: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[User]:
        query = db.query(User).filter(User.deleted_at == None)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.filter((User.email.ilike(pattern)) | (User.full_name.ilike(pattern)))
        return query.order_by(User.id).offset(skip).limit(limit).all()


user = CRUDUser(User)
