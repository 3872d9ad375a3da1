from __future__ import annotations


class AnnotatorError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AnnotatorError):
    status_code = 400

    def __init__(self, errors: list[str] | str) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


class NotFound(AnnotatorError):
    status_code = 404


class OutOfRange(AnnotatorError):
    status_code = 400

    def __init__(self, index: object, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__("Invalid index")


class UpstreamFetchFailure(AnnotatorError):
    """A queued video could not be downloaded or copied into the cache."""

    status_code = 502

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


class BackendUnavailable(AnnotatorError):
    status_code = 500
