# storefront/core/identity.py
import logging
from typing import Protocol

from storefront.models.user import User

logger = logging.getLogger(__name__)


class IdentityBoundary(Protocol):
    """
    Sign-in state as seen by the cart.

    prompt_sign_in asks the visitor to authenticate and resolves True only
    if they completed sign-in (is_signed_in/user_id reflect it afterwards).
    """

    @property
    def is_signed_in(self) -> bool: ...

    @property
    def user_id(self) -> str | None: ...

    async def prompt_sign_in(self, message: str | None = None) -> bool: ...


class RequestIdentity:
    """
    Identity of one HTTP request.

    A request cannot open a sign-in dialog, so the prompt is logged and
    resolves False; the client shows its own sign-in UI on the 401.
    """

    def __init__(self, user: User | None, guest_session: str | None = None):
        self.user = user
        self.guest_session = guest_session

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return self.user.auth_id if self.user else None

    async def prompt_sign_in(self, message: str | None = None) -> bool:
        logger.info(
            "Sign-in requested for guest session %s: %s",
            self.guest_session,
            message or "",
        )
        return False
