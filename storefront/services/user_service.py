# storefront/services/user_service.py
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.models.user import User, default_preferences
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import PreferencesUpdate, UserUpdate


def _default_name_from_email(email: str) -> str:
    """
    Derive a default display name from email if the provider
    does not supply one.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - provision the profile row the remote cart hangs off
      - keep email / admin flag in sync with the identity provider
      - profile edits (name, preferences)
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def _is_admin_email(self, email: str) -> bool:
        admins = {e.lower() for e in get_settings().ADMIN_EMAILS}
        return email.lower() in admins

    def sync_profile(
        self,
        session: Session,
        *,
        auth_id: str,
        email: str,
        name: str | None = None,
        image_url: str | None = None,
    ) -> User:
        """
        Create or update the profile for a signed-in identity.

        Called on every authenticated request, so the row exists before
        any remote cart mutation needs it.
          - new rows get default preferences
          - is_admin is recomputed from ADMIN_EMAILS every time
          - provider-supplied name/avatar overwrite stored ones
        """
        is_admin = self._is_admin_email(email)
        user = self.repo.get_by_auth_id(session, auth_id)

        if user is None:
            return self.repo.create(
                session,
                User(
                    auth_id=auth_id,
                    email=email,
                    name=name or _default_name_from_email(email),
                    image_url=image_url or "",
                    is_admin=is_admin,
                    preferences=default_preferences(),
                ),
            )

        changed = user.email != email or user.is_admin != is_admin
        user.email = email
        user.is_admin = is_admin
        if name and name != user.name:
            user.name = name
            changed = True
        if image_url and image_url != user.image_url:
            user.image_url = image_url
            changed = True

        return self.repo.update(session, user) if changed else user

    def update_me(self, session: Session, current_user: User, payload: UserUpdate) -> User:
        """
        Partial update for profile edits.
        Currently, only `name` is editable.
        """
        if payload.name is not None:
            current_user.name = payload.name

        return self.repo.update(session, current_user)

    def update_preferences(
        self,
        session: Session,
        current_user: User,
        payload: PreferencesUpdate,
    ) -> User:
        """Merge the provided preference fields into the stored ones."""
        updates = payload.model_dump(exclude_none=True)
        # Reassign instead of mutating so the JSON column is flagged dirty.
        current_user.preferences = {**current_user.preferences, **updates}
        return self.repo.update(session, current_user)
