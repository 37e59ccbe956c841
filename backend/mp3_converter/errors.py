"""Error taxonomy for the conversion API.

Every error raised by a request handler derives from ``ConversionAPIError``
and carries the HTTP status code it should be rendered with.  The handlers
registered in ``mp3_converter.main`` turn them into
``{"success": false, "error": ..., "details": ...}`` bodies.
"""
from typing import Optional


class ConversionAPIError(Exception):
    """Base exception for errors surfaced to API clients."""
    def __init__(self, message: str, status_code: int = 500, details: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class MissingFileError(ConversionAPIError):
    """Raised when /convert is called without a ``file`` field."""
    def __init__(self, message: str = "No se proporcionó ningún archivo"):
        super().__init__(message, status_code=400)


class MissingURLError(ConversionAPIError):
    """Raised when /convert-url is called without a ``url``."""
    def __init__(self, message: str = "Se requiere una URL en el body"):
        super().__init__(message, status_code=400)


class UnsupportedFormatError(ConversionAPIError):
    """Raised when an upload's extension is not on the allow-list."""
    def __init__(self, allowed_extensions):
        self.allowed_extensions = list(allowed_extensions)
        super().__init__(
            f"Formato no permitido. Solo: {', '.join(self.allowed_extensions)}",
            status_code=400,
        )


class FileTooLargeError(ConversionAPIError):
    """Raised when an upload exceeds the configured size cap."""
    def __init__(self, max_size_bytes: int):
        self.max_size_bytes = max_size_bytes
        max_mb = max_size_bytes // (1024 * 1024)
        super().__init__(
            f"El archivo es demasiado grande. Máximo {max_mb} MB",
            status_code=400,
        )


class ConverterFailedError(ConversionAPIError):
    """Raised when the converter reports a failure."""
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, status_code=500, details=details)


class ConverterUnavailableError(ConverterFailedError):
    """Raised when the converter executable cannot be started at all."""


class FileNotFoundInStoreError(ConversionAPIError):
    """Raised when a requested artifact is not in the working directory."""
    def __init__(self, message: str = "Archivo no encontrado"):
        super().__init__(message, status_code=404)


class FilesystemError(ConversionAPIError):
    """Raised when scanning or deleting in the working directory fails."""
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, status_code=500, details=details)
