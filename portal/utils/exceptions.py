from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception for API errors.
    Ensures clarity and actionable next steps."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred. Please try again.",
    ):
        super().__init__(status_code=status_code, detail=detail)

    @property
    def kind(self) -> str:
        """Stable error kind reported to clients."""
        return self.__class__.__name__


# ============== Authentication ==============


class InvalidCredentialsException(BaseAPIException):
    """Triggered when login fails. Never reveals which half was wrong."""

    def __init__(self, detail: str = "Invalid email or password."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


# ============== Validation ==============


class ValidationError(BaseAPIException):
    """A required field is missing or malformed."""

    def __init__(self, detail: str = "The submitted data is invalid."):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class EmptyFieldError(ValidationError):
    """A required text field is empty or whitespace only."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(detail=f"'{field}' must not be empty.")


# ============== Permissions ==============


class ForbiddenError(BaseAPIException):
    """Role or department does not allow this action."""

    def __init__(
        self, detail: str = "You do not have the required permissions for this action."
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


# ============== Lookups & Conflicts ==============


class NotFoundError(BaseAPIException):
    """Generic fallback for missing resources."""

    def __init__(self, detail: str = "The requested resource could not be found."):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class ConflictError(BaseAPIException):
    """Duplicate unique value or a delete blocked by dependent rows."""

    def __init__(self, detail: str = "The request conflicts with existing data."):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )
