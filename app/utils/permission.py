from fastapi import HTTPException, status

from app.schemas.user import UserContext
from app.core.constants import RoleEnum


class PermissionHelper:
    @staticmethod
    def is_admin(context: UserContext) -> bool:
        return context.role == RoleEnum.ADMIN

    @staticmethod
    def is_moderator(context: UserContext) -> bool:
        return context.role == RoleEnum.MODERATOR

    @staticmethod
    def is_staff(context: UserContext) -> bool:
        return context.role in (RoleEnum.ADMIN, RoleEnum.MODERATOR)

    @staticmethod
    def owns(context: UserContext, user_id: int) -> bool:
        return context.user.id == user_id

    @staticmethod
    def require_admin(context: UserContext, message: str = "Only admins can perform this action."):
        if not PermissionHelper.is_admin(context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)

    @staticmethod
    def require_owner_or_staff(context: UserContext, user_id: int, message: str = "You can only access your own records."):
        if PermissionHelper.owns(context, user_id) or PermissionHelper.is_staff(context):
            return
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)

    @staticmethod
    def require_owner(context: UserContext, user_id: int, message: str = "You can only modify your own records."):
        if not PermissionHelper.owns(context, user_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
