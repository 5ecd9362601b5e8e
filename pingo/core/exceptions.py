"""Custom exception hierarchy for the bingo engine."""


class PingoError(Exception):
    """Base exception for bingo engine failures."""


class BoardStructureError(PingoError):
    """Raised when a board does not have the expected 5x5 layout."""


class AnalysisError(PingoError):
    """Raised when an image analysis payload cannot be interpreted."""


class BoardNotFoundError(PingoError):
    """Raised when a stored game or player board is missing."""


class SubjectGenerationError(PingoError):
    """Raised when board subjects cannot be generated for a theme."""


class InvalidDocumentIdError(PingoError):
    """Raised when a game or user id cannot be used as a document name."""
