class AppcacheError(Exception):
    """Base class for failures while generating the appcache manifest."""


class ValidationError(AppcacheError):
    """Raised when inputs are unusable before anything is written."""


class AppcacheIOError(AppcacheError):
    """Raised when a file cannot be read or written."""


class ReadError(AppcacheIOError):
    pass


class WriteError(AppcacheIOError):
    pass


class TemplateError(AppcacheError):
    """Raised when the manifest template cannot be filled."""
