from typing import Dict, Optional


class FrameWorkerException(Exception):
    """Base exception for the frame extraction worker."""

    def __init__(self, message: str, error_code: str = None, details: Dict = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ProcessingException(FrameWorkerException):
    """
    Raised by a segment processing step.

    The ``fatal`` flag is set where the failure originates and tells the
    consumer whether redelivering the segment could ever succeed.
    """

    fatal: bool = False

    def __init__(self, message: str, error_code: str = None, details: Dict = None, fatal: Optional[bool] = None):
        super().__init__(message, error_code=error_code, details=details)
        if fatal is not None:
            self.fatal = fatal


class FatalProcessingError(ProcessingException):
    """Retrying the segment cannot change the outcome."""

    fatal = True


class TransientProcessingError(ProcessingException):
    """The segment may succeed on a later delivery."""

    fatal = False


class InvalidSegmentException(FatalProcessingError):
    """Raised when the segment URI does not serve a video."""
    pass


class DecodeException(FatalProcessingError):
    """Raised when the segment cannot be decoded into frames."""
    pass


class DownloadException(TransientProcessingError):
    """Raised on network failures while fetching a segment."""
    pass


class UploadException(TransientProcessingError):
    """Raised when a frame image cannot be written to object storage."""
    pass


class ProviderException(FrameWorkerException):
    """Raised when external provider fails."""
    pass


class ConfigurationException(FrameWorkerException):
    """Raised when configuration is invalid."""
    pass


class ValidationException(FatalProcessingError):
    """Raised when a segment job message is malformed."""
    pass


class PublishException(FrameWorkerException):
    """Raised when a frame-created event cannot be published."""
    pass
