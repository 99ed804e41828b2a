from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "SYS_000"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code


class ValidationError(ServiceError):
    """Malformed input: bad year format, missing parameters, unregistered academic year."""

    code = "VAL_001"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ServiceError):
    """Referenced school, class, student or teacher does not exist."""

    code = "RES_001"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(ServiceError):
    """Concurrent modification or an operation already in flight for the same resource."""

    code = "RES_003"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class TransactionFailure(ServiceError):
    """Unexpected failure inside a transactional flow; the transaction has been rolled back."""

    code = "SYS_001"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
