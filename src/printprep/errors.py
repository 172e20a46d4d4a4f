"""Printing pipeline exceptions."""

from __future__ import annotations


class PrintingError(RuntimeError):
    """Base error for the printing pipeline."""


class PrinterUnavailableError(PrintingError):
    """Raised when no printer is selected and no default printer exists."""


class PrintJobSubmissionError(PrintingError):
    """Raised when the OS print facility rejects a job."""


class GeometryError(PrintingError):
    """Raised when a document cannot be loaded, re-boxed or written."""


class CommandError(PrintingError):
    """Raised when an external command cannot run or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class CommandTimeoutError(CommandError):
    """Raised when an external command does not finish within its timeout."""
