from fastapi import Depends, Header, HTTPException, status
from typing import Optional

from discipline.api.dependencies.services import get_repository
from discipline.domain.models.user import UserProfile
from discipline.domain.repository import Repository


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    repository: Repository = Depends(get_repository),
) -> UserProfile:
    """
    Identity comes from the X-User-Id header set by the hosting front end.
    There is no authentication in this service.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header missing",
        )

    user = repository.get_user(x_user_id.strip())
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user. Create a profile with POST /api/v1/users first",
        )
    return user
