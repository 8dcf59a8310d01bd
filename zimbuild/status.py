"""Result codes reported when a rule is run."""

from enum import IntEnum


class Code(IntEnum):
    """Scheduling result for a rule."""

    ERROR = 0
    SKIPPED = 1
    EXEC_ERROR = 2
    MISSING_OUTPUT_ERROR = 3
    OK = 4
    CACHED = 5