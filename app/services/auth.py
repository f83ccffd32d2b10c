import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.constants import RoleEnum
from app.core.security import get_password_hash, verify_password, create_access_token
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.token import LoginResponse, Token
from app.schemas.user import User as UserSchema, UserCreate

logger = logging.getLogger(__name__)


class AuthService:
    def signup(self, db: Session, *, user_in: UserCreate) -> User:
        if crud_user.get_by_email_with_soft_deleted(db, email=user_in.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists.",
            )

        user_data = user_in.model_dump(exclude={"password"})
        user_data.update(
            hashed_password=get_password_hash(user_in.password),
            role=RoleEnum.USER,
            is_active=True,
        )
        new_user = crud_user.create(db, obj_in=user_data, commit=False)
        logger.info(f"New account {new_user.id} registered")
        return new_user

    def issue_token(self, user: User) -> Token:
        token_payload = {"user_id": user.id, "role": RoleEnum(user.role).value}
        access_token = create_access_token(data=token_payload, email=user.email)
        return Token(access_token=access_token, token_type="bearer")

    def login(self, db: Session, *, email: str, password: str) -> LoginResponse:
        user = crud_user.get_by_email(db, email=email)
        if not user or not verify_password(password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User is inactive",
            )

        return LoginResponse(token=self.issue_token(user), user=UserSchema.model_validate(user))


auth_service = AuthService()
