from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.token import LoginRequest, LoginResponse
from app.schemas.user import User, UserCreate
from app.services.auth import auth_service
from app.utils import deps

router = APIRouter()

@router.post("/signup", response_model=APIResponse[LoginResponse], status_code=status.HTTP_201_CREATED)
def signup(
    *,
    db: Session = Depends(deps.get_transactional_db),
    user_in: UserCreate
):
    """Create a candidate account and log it in."""
    new_user = auth_service.signup(db=db, user_in=user_in)
    login_data = LoginResponse(token=auth_service.issue_token(new_user), user=User.model_validate(new_user))
    return APIResponse(message="Account created successfully", data=login_data)

@router.post("/login", response_model=APIResponse[LoginResponse])
def login_for_access_token(
    request: LoginRequest,
    db: Session = Depends(deps.get_db)
):
    """Exchange email and password for a bearer token."""
    login_data = auth_service.login(db=db, email=request.email, password=request.password)
    return APIResponse(message="Login successful", data=login_data)
