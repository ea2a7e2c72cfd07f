from fastapi import APIRouter, Depends, HTTPException

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_repository
from discipline.api.schemas import UserCreate, UserResponse
from discipline.core.logging import get_logger
from discipline.domain.models.user import UserProfile
from discipline.domain.repository import Repository

router = APIRouter(prefix="/users", tags=["Users"])
logger = get_logger(__name__)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, repository: Repository = Depends(get_repository)):
    """Create a profile. The returned id is sent back as the X-User-Id header."""
    if repository.get_user_by_email(data.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    profile = UserProfile(id=None, email=data.email, display_name=data.display_name, timezone=data.timezone)
    user_id = repository.create_user(profile)
    logger.info("User created", user_id=user_id)
    return repository.get_user(user_id)


@router.get("/me", response_model=UserResponse)
def me(current_user: UserProfile = Depends(get_current_user)):
    return current_user
