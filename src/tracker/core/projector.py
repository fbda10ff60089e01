"""Attendance projection.

Pure functions deriving display metrics from one subject's counters:

- attendance_percentage: present / total * 100, 0 when no class was held
- classify_status: ON_TRACK / WARNING / CRITICAL with a 10 point buffer
- safe_absences: classes that can still be missed while staying on target
- required_attendance: classes to attend, starting now, to reach target

Threshold comparisons and ceil/floor steps are computed on exact integers
(fractions for the comparisons) so class counts never drift on float error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterable

from tracker.core.attendance import Subject

# Percentage points below target that still count as WARNING
WARNING_BUFFER = 10


class AttendanceStatus(str, Enum):
    """Where a subject stands relative to its target."""

    ON_TRACK = "on_track"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class SubjectProjection:
    """Read-only view of a subject plus its derived metrics."""

    subject: Subject
    percentage: float
    status: AttendanceStatus
    safe_absences: int
    required_attendance: int

    @property
    def is_on_track(self) -> bool:
        return self.status is AttendanceStatus.ON_TRACK

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.subject.to_dict(),
            "percentage": self.percentage,
            "status": self.status.value,
            "safe_absences": self.safe_absences,
            "required_attendance": self.required_attendance,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    """Dashboard totals across all subjects."""

    total_subjects: int
    total_classes: int
    average_attendance: float


# =============================================================================
# HELPERS
# =============================================================================


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _exact_percentage(subject: Subject) -> Fraction:
    if subject.total == 0:
        return Fraction(0)
    return Fraction(subject.present * 100, subject.total)


def _meets_target(subject: Subject) -> bool:
    return _exact_percentage(subject) >= subject.target


# =============================================================================
# PROJECTIONS
# =============================================================================


def attendance_percentage(subject: Subject) -> float:
    """Attendance percentage, exactly 0.0 when total is 0."""
    if subject.total == 0:
        return 0.0
    return subject.present / subject.total * 100


def classify_status(subject: Subject) -> AttendanceStatus:
    """Classify against target using the unrounded percentage.

    ON_TRACK:  percentage >= target
    WARNING:   target - 10 <= percentage < target
    CRITICAL:  percentage < target - 10
    """
    percentage = _exact_percentage(subject)
    if percentage >= subject.target:
        return AttendanceStatus.ON_TRACK
    if percentage >= subject.target - WARNING_BUFFER:
        return AttendanceStatus.WARNING
    return AttendanceStatus.CRITICAL


def safe_absences(subject: Subject) -> int:
    """How many more classes can be missed before dropping below target.

    Only defined while on target with at least one class held; 0 otherwise.

    required_present = ceil(target/100 * total)
    max_total = floor(present / (target/100))
    result = max(0, max_total - total)
    """
    if subject.total == 0 or not _meets_target(subject):
        return 0

    required_present = _ceil_div(subject.target * subject.total, 100)
    if subject.present < required_present:
        return 0

    max_total = (subject.present * 100) // subject.target
    return max(0, max_total - subject.total)


def required_attendance(subject: Subject) -> int:
    """How many classes must be attended to get back to target.

    Only defined while below target with at least one class held; 0 otherwise.
    A one-step bound assuming the next class is held and attended:

    required_present = ceil(target/100 * (total + 1))
    result = max(0, required_present - present)
    """
    if subject.total == 0 or _meets_target(subject):
        return 0

    required_present = _ceil_div(subject.target * (subject.total + 1), 100)
    return max(0, required_present - subject.present)


def project(subject: Subject) -> SubjectProjection:
    """Compute every display metric for one subject."""
    return SubjectProjection(
        subject=subject,
        percentage=attendance_percentage(subject),
        status=classify_status(subject),
        safe_absences=safe_absences(subject),
        required_attendance=required_attendance(subject),
    )


def project_all(subjects: Iterable[Subject]) -> list[SubjectProjection]:
    return [project(s) for s in subjects]


def summarize(subjects: Iterable[Subject]) -> AttendanceSummary:
    """Totals for the dashboard header.

    The average is the plain mean of per-subject percentages (subjects with
    no classes count as 0%), and 0.0 while no class has been held anywhere.
    """
    subjects = list(subjects)
    total_classes = sum(s.total for s in subjects)

    if total_classes == 0:
        average = 0.0
    else:
        average = sum(attendance_percentage(s) for s in subjects) / len(subjects)

    return AttendanceSummary(
        total_subjects=len(subjects),
        total_classes=total_classes,
        average_attendance=average,
    )
