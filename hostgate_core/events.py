"""
Canonical hook event names for hostgate-core.
Stable surface for audit and observability hooks.
"""

# Permission mediation
PERMISSION_REQUESTED = "permission:requested"
PERMISSION_GRANTED = "permission:granted"
PERMISSION_DENIED = "permission:denied"

# Update lifecycle
UPDATE_STATE = "update:state"  # Every state transition
UPDATE_STATUS = "update:status"  # Every status line sent to the notification sink
UPDATE_ERROR = "update:error"  # Transport failures
UPDATE_IGNORED = "update:ignored"  # Malformed or stale events
UPDATE_RELAUNCH = "update:relaunch"  # Install issued, process about to restart

# All canonical events (for iteration and validation)
ALL_EVENTS = [
    PERMISSION_REQUESTED,
    PERMISSION_GRANTED,
    PERMISSION_DENIED,
    UPDATE_STATE,
    UPDATE_STATUS,
    UPDATE_ERROR,
    UPDATE_IGNORED,
    UPDATE_RELAUNCH,
]
