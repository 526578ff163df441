# -*- coding: utf-8 -*-

"""
Exception types raised by the batch pipeline.

Conversion and validation failures are returned as reports, not raised.
Submission, polling and download failures are raised with one of these
types so that callers can tell them apart.
"""


class GeminiBatchError(Exception):
    """Base class for batch pipeline failures."""


class InvalidParamsError(GeminiBatchError, ValueError):
    """Raised when caller input is missing or malformed."""


class UnsupportedFormatError(GeminiBatchError):
    """Raised when a source file format cannot be converted to JSONL."""


class ValidationFailedError(GeminiBatchError):
    """Raised when a JSONL file has malformed or schema-mismatched lines."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class RemoteOperationFailedError(GeminiBatchError):
    """Raised when the Gemini API rejects a request."""


class PollingTimeoutError(GeminiBatchError, TimeoutError):
    """Raised when a job is still running after the polling deadline."""


class NoResultsAvailableError(GeminiBatchError):
    """Raised when a terminal job has neither inline nor file results."""
