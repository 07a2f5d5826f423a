"""geodoctor package root."""

from geodoctor.exceptions import (
    ConfigurationInconsistency,
    GeoDoctorError,
    InputShapeError,
    ReportIOError,
    StepOrderError,
    UnknownStepError,
)

__all__ = [
    "__version__",
    "ConfigurationInconsistency",
    "GeoDoctorError",
    "InputShapeError",
    "ReportIOError",
    "StepOrderError",
    "UnknownStepError",
]

__version__ = "0.1.0"
