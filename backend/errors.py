"""Exception types shared by the scheduler, session controller and API."""


class SlowkaError(Exception):
    """Base exception carrying the HTTP status the API layer should use."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"error": type(self).__name__, "detail": self.message}


class ValidationError(SlowkaError):
    """Malformed filter, rating or request input, rejected before any I/O."""

    status_code = 400


class PersistenceError(SlowkaError):
    """The storage layer failed to read or write."""

    status_code = 503


class SessionBusyError(SlowkaError):
    """A rating is already being written for this session."""

    status_code = 409


class TranslationError(SlowkaError):
    """The translation service returned an error or no translation."""

    status_code = 502


class GenerationError(SlowkaError):
    """The LLM returned output that could not be used."""

    status_code = 502
