# nvidia_exporter/errors.py
"""
Failures the exporter can run into.

Every one of these is fatal for the process: the sampler hands them to the
supervisor in `cli.main` through a queue, which logs them and exits.
"""
from __future__ import annotations

from typing import Sequence


class ExporterError(Exception):
    """Base class for everything the exporter treats as unrecoverable."""


class ConfigurationError(ExporterError):
    """Bad startup parameters (e.g. an interval that rounds to 0 seconds)."""


class RegistrationError(ExporterError):
    """A metric name was registered twice."""


class ListenerError(ExporterError):
    """The HTTP listener stopped serving."""


class ToolIOError(ExporterError):
    """nvidia-smi could not be started, or its output stream failed/closed."""

    def __init__(self, message: str, command: Sequence[str] | None = None) -> None:
        self.command = list(command) if command else []
        if self.command:
            message = f"{message} (command: {' '.join(self.command)})"
        super().__init__(message)


class MalformedOutputError(ExporterError):
    """A line of nvidia-smi output did not match the requested fields."""

    def __init__(self, message: str, line: str) -> None:
        self.line = line
        super().__init__(message)


class FieldCountError(MalformedOutputError):
    def __init__(self, line: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"invalid nvidia-smi output: expected {expected} fields, got {actual}: {line!r}",
            line,
        )


class FieldValueError(MalformedOutputError):
    def __init__(self, line: str, field: str, value: str, cause: str) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"error converting {field} value ({value!r}) to float: {cause}",
            line,
        )
