"""
Error types raised by the scheduling engine.
"""


class SchedulerError(Exception):
    """Base exception for scheduling errors"""

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class InvalidWindowError(SchedulerError):
    """Raised when the scheduling window is missing or inverted"""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_WINDOW")


class InvalidIntervalError(SchedulerError):
    """Raised when an interval does not start strictly before it ends"""

    def __init__(self, start, end, label: str = "Interval"):
        self.start = start
        self.end = end
        message = f"{label} must start before it ends (start={start}, end={end})"
        super().__init__(message, "INVALID_INTERVAL")


class ConfigurationError(SchedulerError):
    """Raised when engine settings are out of range"""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, "INVALID_CONFIGURATION")


class EnergyMatrixError(SchedulerError):
    """Raised when a supplied energy matrix has the wrong shape"""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_ENERGY_MATRIX")


class InvalidTaskError(SchedulerError):
    """Raised when a flexible task has an unusable session policy"""

    def __init__(self, task_id: str, message: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id}: {message}", "INVALID_TASK")


class TimezoneMismatchError(SchedulerError):
    """Raised when naive and timezone-aware datetimes are mixed in one run"""

    def __init__(self, message: str):
        super().__init__(message, "MIXED_TIMEZONES")
