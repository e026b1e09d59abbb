"""Domain errors raised by services and stores; routers map them to HTTP responses."""


class TastebaseError(Exception):
    """Base class for expected, user-facing failures."""


class AlreadyExists(TastebaseError):
    pass


class InvalidCredentials(TastebaseError):
    pass


class InvalidPassword(TastebaseError):
    pass


class InvalidUsername(TastebaseError):
    pass


class UsernameTaken(InvalidUsername):
    pass


class InvalidIdentifier(TastebaseError):
    pass


class UploadError(TastebaseError):
    pass


class InvalidImage(TastebaseError):
    """The upload itself is unacceptable (missing, not an image, too large)."""
