from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.constants import RoleEnum
from app.core.security import get_password_hash, verify_password
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.user import UserContext, UserStatusUpdate, UserUpdate, User as UserSchema
from app.utils.permission import PermissionHelper as permission_helper
from app.utils.logger import setup_logger

logger = setup_logger("user_service", "user_service.log")


class UserService:

    def _get_or_404(self, db: Session, user_id: int) -> User:
        user = crud_user.get(db, id=user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
        return user

    def _active_admin_count(self, db: Session) -> int:
        return len(crud_user.get_multi_filtered(db, role=RoleEnum.ADMIN, is_active=True, limit=2))

    def update_profile(self, db: Session, user_id: int, update_data: UserUpdate) -> UserSchema:
        user = self._get_or_404(db, user_id)
        updated_user = crud_user.update(db, db_obj=user, obj_in=update_data, commit=False)
        return UserSchema.model_validate(updated_user)

    def change_password(self, db: Session, user_id: int, old_password: str, new_password: str) -> UserSchema:
        user = self._get_or_404(db, user_id)
        if not verify_password(old_password, user.hashed_password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect old password.")

        updated_user = crud_user.update(
            db, db_obj=user, obj_in={"hashed_password": get_password_hash(new_password)}, commit=False
        )
        logger.info(f"User {user_id} changed their password")
        return UserSchema.model_validate(updated_user)

    def list_users(self, db: Session, current_user_context: UserContext, role: Optional[RoleEnum] = None,
                   is_active: Optional[bool] = None, search: Optional[str] = None,
                   skip: int = 0, limit: int = 100) -> List[UserSchema]:
        permission_helper.require_admin(current_user_context, "Only admins can list users.")
        users = crud_user.get_multi_filtered(db, role=role, is_active=is_active, search=search, skip=skip, limit=limit)
        return [UserSchema.model_validate(u) for u in users]

    def update_user_status(self, db: Session, user_id: int, update_data: UserStatusUpdate,
                           current_user_context: UserContext) -> UserSchema:
        """Activate/deactivate an account or change its role."""
        permission_helper.require_admin(current_user_context, "Only admins can change account status.")
        user = self._get_or_404(db, user_id)

        losing_admin = user.role == RoleEnum.ADMIN and (
            update_data.is_active is False
            or (update_data.role is not None and update_data.role != RoleEnum.ADMIN)
        )
        if losing_admin and self._active_admin_count(db) <= 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot remove the last active administrator."
            )

        updated_user = crud_user.update(db, db_obj=user, obj_in=update_data, commit=False)

        if update_data.is_active is not None:
            status_text = "activated" if update_data.is_active else "deactivated"
            logger.info(f"User {user_id} ({user.email}) {status_text} by admin {current_user_context.user.id}")
        if update_data.role is not None:
            logger.info(f"User {user_id} role set to {update_data.role.value} by admin {current_user_context.user.id}")

        return UserSchema.model_validate(updated_user)

    def delete_user_by_admin(self, db: Session, user_id: int, current_user_context: UserContext) -> UserSchema:
        """Delete a user by admin (soft delete)."""
        permission_helper.require_admin(current_user_context, "Only admins can delete users.")
        user = self._get_or_404(db, user_id)
        if user.id == current_user_context.user.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account.")

        deleted_user = crud_user.delete(db, id=user_id, commit=False)

        logger.info(f"User deleted by admin: {user.email}")

        return UserSchema.model_validate(deleted_user)


user_service = UserService()
