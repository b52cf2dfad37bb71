"""Errors raised by the cluster resource client."""


class ApiError(RuntimeError):
    """Non-2xx response from the orchestration API."""

    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


class NotFoundError(ApiError):
    def __init__(self, message="not found"):
        super().__init__(404, message)


class ConflictError(ApiError):
    def __init__(self, message="already exists"):
        super().__init__(409, message)


class RequestTimeoutError(ApiError):
    """Transport-level timeout; the request never got a response."""

    def __init__(self, message="request timed out"):
        super().__init__(None, message)
