"""Message severities shared by the UIs."""

from enum import Enum


class Severity(Enum):
    """How a console message is rendered."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
