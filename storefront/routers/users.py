# storefront/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import PreferencesUpdate, UserRead, UserUpdate
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    The row is created or refreshed by the auth dependency on every request.
    """
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Currently, only `name` is editable.
    """
    return service.update_me(session, current_user, payload)


@router.patch("/me/preferences", response_model=UserRead)
def update_my_preferences(
    payload: PreferencesUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Merge theme / email preferences into the stored ones.
    """
    return service.update_preferences(session, current_user, payload)
