"""
Enumeration types for portmap.
"""

from enum import Enum


# =============================================================================
# Binding-Related Enums
# =============================================================================


class BindStatus(str, Enum):
    """
    Outcome of a bind request.

    - CREATED: the port was unbound; a new listener was started
    - UPDATED: the port was already bound; its target was replaced in place
    """

    CREATED = "created"
    UPDATED = "updated"


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
