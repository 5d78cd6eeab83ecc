# storefront/core/errors.py
"""Cart error hierarchy.

Every error carries a stable ``code``, a user-safe ``message`` and the
``http_status`` the API handler renders it with.

Recovery policy:
    - StorageCorruptError: recovered inside the local store (empty cart).
    - MergeAbortedError: swallowed to a warning by the reconciliation service.
    - Everything else propagates to the caller.
"""


class CartError(Exception):
    """Base exception for all cart errors."""

    code = "CART_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class StorageCorruptError(CartError):
    """The persisted guest cart blob could not be parsed."""

    code = "STORAGE_CORRUPT"

    def __init__(self, key: str, reason: str):
        super().__init__(f"Local cart '{key}' is unreadable: {reason}")
        self.key = key
        self.reason = reason


class NotFoundError(CartError):
    """Remote mutation against a missing user or a line owned by someone else."""

    code = "NOT_FOUND"
    http_status = 404


class MergeAbortedError(CartError):
    """One upsert in the guest -> account merge sequence failed."""

    code = "MERGE_ABORTED"

    def __init__(self, merged: int, remaining: int, cause: Exception):
        super().__init__(
            f"Guest cart merge aborted after {merged} line(s), "
            f"{remaining} left in local cart: {cause}"
        )
        self.merged = merged
        self.remaining = remaining
        self.cause = cause


class SignInRequiredError(CartError):
    """A guest tried an operation that needs an account and did not sign in."""

    code = "SIGN_IN_REQUIRED"
    http_status = 401


class GuestSessionRequiredError(CartError):
    """Guest request without a guest session handle."""

    code = "GUEST_SESSION_REQUIRED"
    http_status = 400
