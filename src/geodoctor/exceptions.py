"""Error taxonomy for geodoctor runs.

Gate verdicts (PASS/WARN/FAIL) are data, not exceptions. Everything here is a
broken input, a broken policy, or a failed file operation; none of them are
retried.
"""

from __future__ import annotations

from pathlib import Path


class GeoDoctorError(Exception):
    """Base class for classified run failures."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = None if path is None else str(path)

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class InputShapeError(GeoDoctorError):
    """Adjacency, cluster, policy or report JSON does not have the expected shape."""


class ConfigurationInconsistency(GeoDoctorError):
    """The policy itself is broken: a missing field or a Fail threshold looser than Warn."""


class ReportIOError(GeoDoctorError):
    """An input file could not be read or the report could not be written."""


class UnknownStepError(GeoDoctorError):
    """A pipeline step id has no registered handler."""


class StepOrderError(GeoDoctorError):
    """A step ran before the step that produces its input."""
