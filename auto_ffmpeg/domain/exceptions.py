"""
Defines custom exception types for auto-ffmpeg.

All custom exceptions inherit from `AutoFFmpegException`, so callers that only
care about "something in this tool went wrong" can catch the base class.
"""


class AutoFFmpegException(Exception):
    """Base class for all custom exceptions in auto-ffmpeg."""

    pass


class ConfigError(AutoFFmpegException):
    """
    Raised when `config.txt` is missing, malformed, or lacks a required key.

    Configuration errors are fatal at startup: no job is dispatched when the
    configuration cannot be fully validated.
    """

    pass


class OutputDirectoryError(AutoFFmpegException):
    """
    Raised when a destination directory cannot be created.

    This is fatal to the job that triggered the creation only. The worker pool
    marks that job as failed and continues with the rest of the queue.
    """

    pass


class ProbeError(AutoFFmpegException):
    """
    Raised when ffprobe fails or its report cannot be parsed.

    The probe-match filter converts this into a mismatch, so the file is
    skipped rather than escalated.
    """

    pass
