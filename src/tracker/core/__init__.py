"""Core tracking logic.

Modules:
- attendance: Subject store (counters, edits, reset)
- projector: Percentage, status, safe absences, required attendance
- persistence: JSON persistence adapter for the subject store
- storage: Durable key-value slots (file and in-memory)
- notes: Year/semester notes library
"""

__all__ = [
    "attendance",
    "projector",
    "persistence",
    "storage",
    "notes",
]
