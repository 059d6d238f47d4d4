class ExtractionError(Exception):
    """Base class for all errors raised while extracting presentation text."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Extraction failed"
        self.message = message
        super().__init__(message)
        # Optional chaining for debugging
        self.__cause__ = cause


class ExtractionFileReadError(ExtractionError):
    """Raised when the source file cannot be read."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Failed to read file: {file_path}"
        super().__init__(message, cause=cause)


class ExtractionFileFormatNotSupportedError(ExtractionError):
    """Raised when the file format is unknown or uses an unsupported variant."""

    def __init__(
        self,
        message: str = None,
        *,
        file_path: str | None = None,
        cause: Exception = None,
    ):
        self.file_path = file_path
        if message is None:
            message = "Unsupported or unrecognized file format"
            if file_path:
                message = f"{message}: {file_path}"
        super().__init__(message, cause=cause)


class ExtractionFileEncryptedError(ExtractionFileFormatNotSupportedError):
    """Raised when the presentation is encrypted or password-protected."""


class ExtractionFileCorruptedError(ExtractionError):
    """Raised when the file is truncated or its record structure is damaged."""


class ExtractionContainerOpenError(ExtractionError):
    """Raised when the compound-file or ZIP container cannot be opened."""


class ExtractionZipBombError(ExtractionContainerOpenError):
    """Raised when a ZIP container looks like a decompression bomb."""


class ExtractionStructureError(ExtractionError):
    """Raised when the relationship manifest or slide XML cannot be parsed."""


class ExtractionFailedError(ExtractionError):
    """Raised when extraction hits an unexpected internal state."""
