"""Input validation helpers.

Functions:
- normalize_subject_name(name) -> str | None: Trimmed name, or None if blank
- is_valid_target(target) -> bool: Integer percentage in 1..100
- is_valid_counts(present, total) -> bool: 0 <= present <= total
- resolve_subject_id(prefix, candidates) -> str: Resolve prefix to unique id
"""

from typing import Any


class AmbiguousSubjectIdError(Exception):
    """Raised when a subject id prefix matches multiple subjects."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"Prefix '{prefix}' is ambiguous. Candidates:\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class SubjectNotFoundError(Exception):
    """Raised when no subject matches the given id or prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No subject found with id '{prefix}'")


def normalize_subject_name(name: Any) -> str | None:
    """Return the trimmed subject name, or None when it is blank."""
    if not isinstance(name, str):
        return None
    name = name.strip()
    return name or None


def is_valid_target(target: Any) -> bool:
    """Target is an integer percentage in (0, 100]."""
    if isinstance(target, bool) or not isinstance(target, int):
        return False
    return 0 < target <= 100


def is_valid_counts(present: Any, total: Any) -> bool:
    """Counters are integers with 0 <= present <= total."""
    for value in (present, total):
        if isinstance(value, bool) or not isinstance(value, int):
            return False
    return 0 <= present <= total


def resolve_subject_id(prefix: str, candidates: list[str]) -> str:
    """Resolve a subject id prefix to a unique full id.

    Args:
        prefix: Partial or full subject id (e.g., "sub0" or "sub03")
        candidates: List of all subject ids

    Returns:
        The unique matching subject id

    Raises:
        SubjectNotFoundError: If no candidates match the prefix
        AmbiguousSubjectIdError: If multiple candidates match the prefix
    """
    # Exact match first
    if prefix in candidates:
        return prefix

    matches = [c for c in candidates if c.startswith(prefix)]

    if len(matches) == 0:
        raise SubjectNotFoundError(prefix)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousSubjectIdError(prefix, matches)
