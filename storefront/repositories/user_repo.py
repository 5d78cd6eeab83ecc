# storefront/repositories/user_repo.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from storefront.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_auth_id(self, session: Session, auth_id: str) -> User | None:
        """Return a User by identity-provider id, or None if not provisioned yet."""
        stmt = select(User).where(User.auth_id == auth_id)
        return session.exec(stmt).first()

    def create(self, session: Session, user: User) -> User:
        """Insert a new User and return the persisted row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        user.updated_at = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
