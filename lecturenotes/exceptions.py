"""
lecturenotes.exceptions - Custom exception classes.

All lecturenotes exceptions inherit from LectureNotesError, except
CleanupWarning which is only ever logged.
"""


class LectureNotesError(Exception):
    """Base exception for all lecturenotes errors."""

    pass


class ConfigError(LectureNotesError):
    """Configuration loading or validation error."""

    pass


class MediaExtractionError(LectureNotesError):
    """Audio or frame extraction error."""

    pass


class OCRError(LectureNotesError):
    """Frame list could not be read for OCR."""

    pass


class TranscriptionError(LectureNotesError):
    """Transcription job submission or execution error."""

    pass


class TranscriptionTimeoutError(TranscriptionError):
    """Transcription job did not finish within the polling budget."""

    pass


class NotesGenerationError(LectureNotesError):
    """Language model provider error."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)


class ProviderResponseError(NotesGenerationError):
    """Provider returned a malformed or unexpected response."""

    pass


class RenderError(LectureNotesError):
    """PDF rendering error."""

    pass


class UploadError(LectureNotesError):
    """Object storage upload error."""

    pass


class NotificationError(LectureNotesError):
    """Email notification error."""

    pass


class PipelineTimeoutError(LectureNotesError):
    """Pipeline exceeded its deadline."""

    pass


class DependencyError(LectureNotesError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")


class CleanupWarning(UserWarning):
    """Temporary resource could not be removed."""

    pass
