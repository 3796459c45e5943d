"""
Booking Agent Stack - Errors
=============================

Exception hierarchy for the stack build. Every fatal condition aborts the
whole run; missing *optional* sources are never raised, only logged.
"""

from typing import Optional


class BookingStackError(Exception):
    """Base class for all errors raised while building or provisioning the stack."""


class ConfigurationError(BookingStackError):
    """A prompt, schema, or setting is unusable."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        field: Optional[str] = None,
    ):
        self.path = str(path) if path is not None else None
        self.field = field
        location = []
        if self.path:
            location.append(f"path={self.path}")
        if field:
            location.append(f"field={field}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class MissingRequiredSourceError(ConfigurationError):
    """A mandatory file does not exist."""

    def __init__(self, path):
        super().__init__("Required source file not found", path=path)


class MalformedSourceError(ConfigurationError):
    """A file exists but is not valid structured data, or misses a required field."""

    def __init__(self, path, reason: str, field: Optional[str] = None):
        self.reason = reason
        super().__init__(f"Malformed source: {reason}", path=path, field=field)


class UnsupportedLanguageError(ConfigurationError):
    """The requested locale has no prompt directory."""

    def __init__(self, lang: str, supported):
        self.lang = lang
        super().__init__(
            f"Unsupported language {lang!r}, expected one of {sorted(supported)}",
            field="lang",
        )


class TemplateRenderError(BookingStackError):
    """A prompt template could not be rendered."""

    def __init__(self, message: str, variable: Optional[str] = None):
        self.variable = variable
        if variable:
            message = f"{message} (variable={variable})"
        super().__init__(message)


class ProvisioningError(BookingStackError):
    """The external provisioning service rejected or failed the request."""
