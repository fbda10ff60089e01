"""Tests for attendance projection (F1)."""

import pytest

from tracker.core.projector import (
    AttendanceStatus,
    attendance_percentage,
    classify_status,
    project,
    required_attendance,
    safe_absences,
    summarize,
)


class TestAttendancePercentage:
    """Tests for attendance_percentage."""

    def test_zero_total_is_zero(self, make_subject):
        """No classes held means exactly 0%, never NaN."""
        pct = attendance_percentage(make_subject(present=0, total=0))
        assert pct == 0.0
        assert pct == pct  # not NaN

    def test_regular_percentage(self, make_subject):
        assert attendance_percentage(make_subject(present=8, total=10)) == 80.0

    def test_full_attendance(self, make_subject):
        assert attendance_percentage(make_subject(present=4, total=4)) == 100.0

    def test_percentage_is_not_rounded(self, make_subject):
        pct = attendance_percentage(make_subject(present=1, total=3))
        assert pct == pytest.approx(33.3333333, rel=1e-6)


class TestClassifyStatus:
    """Tests for the three-valued status with a 10 point buffer."""

    def test_on_track_above_target(self, make_subject):
        assert classify_status(make_subject(8, 10, 75)) is AttendanceStatus.ON_TRACK

    def test_on_track_exactly_at_target(self, make_subject):
        """75% against a 75% target is on track."""
        assert classify_status(make_subject(3, 4, 75)) is AttendanceStatus.ON_TRACK

    def test_warning_inside_buffer(self, make_subject):
        """70% against 75% sits inside the buffer."""
        assert classify_status(make_subject(7, 10, 75)) is AttendanceStatus.WARNING

    def test_warning_at_lower_buffer_edge(self, make_subject):
        """Exactly target - 10 is still a warning."""
        assert classify_status(make_subject(13, 20, 75)) is AttendanceStatus.WARNING

    def test_critical_below_buffer(self, make_subject):
        """50% against 75% is critical (50 < 65)."""
        assert classify_status(make_subject(5, 10, 75)) is AttendanceStatus.CRITICAL

    def test_just_below_buffer_is_critical(self, make_subject):
        """64.99..% must not be rounded up into the buffer."""
        subject = make_subject(present=6499, total=10000, target=75)
        assert classify_status(subject) is AttendanceStatus.CRITICAL

    def test_just_below_target_is_warning(self, make_subject):
        """74.99..% must not be rounded up to the target."""
        subject = make_subject(present=7499, total=10000, target=75)
        assert classify_status(subject) is AttendanceStatus.WARNING

    def test_zero_total_high_target_is_critical(self, make_subject):
        assert classify_status(make_subject(0, 0, 75)) is AttendanceStatus.CRITICAL

    def test_zero_total_low_target_is_warning(self, make_subject):
        """0% is within 10 points of a 10% target."""
        assert classify_status(make_subject(0, 0, 10)) is AttendanceStatus.WARNING


class TestSafeAbsences:
    """Tests for safe_absences."""

    def test_example_at_limit(self, make_subject):
        """present=8, total=10, target=75 -> maxTotal 10, no spare absences."""
        assert safe_absences(make_subject(8, 10, 75)) == 0

    def test_example_two_spare(self, make_subject):
        """present=9, total=10, target=75 -> maxTotal 12, two spare absences."""
        assert safe_absences(make_subject(9, 10, 75)) == 2

    def test_full_attendance_full_target(self, make_subject):
        assert safe_absences(make_subject(10, 10, 100)) == 0

    def test_low_target(self, make_subject):
        """present=5, total=5, target=50 -> maxTotal 10."""
        assert safe_absences(make_subject(5, 5, 50)) == 5

    def test_zero_total(self, make_subject):
        assert safe_absences(make_subject(0, 0, 75)) == 0

    def test_below_target(self, make_subject):
        assert safe_absences(make_subject(5, 10, 75)) == 0

    @pytest.mark.parametrize("target", [1, 33, 50, 66, 70, 75, 85, 99, 100])
    def test_missing_safe_absences_keeps_target(self, make_subject, target):
        """Missing exactly the safe count stays on track, one more does not."""
        for total in range(1, 31):
            for present in range(0, total + 1):
                subject = make_subject(present, total, target)
                if classify_status(subject) is not AttendanceStatus.ON_TRACK:
                    continue

                spare = safe_absences(subject)
                after = make_subject(present, total + spare, target)
                one_more = make_subject(present, total + spare + 1, target)

                assert classify_status(after) is AttendanceStatus.ON_TRACK
                assert classify_status(one_more) is not AttendanceStatus.ON_TRACK


class TestRequiredAttendance:
    """Tests for required_attendance."""

    def test_example_critical(self, make_subject):
        """present=5, total=10, target=75 -> ceil(0.75*11)=9, need 4."""
        assert required_attendance(make_subject(5, 10, 75)) == 4

    def test_warning_case(self, make_subject):
        """present=7, total=10, target=75 -> ceil(8.25)=9, need 2."""
        assert required_attendance(make_subject(7, 10, 75)) == 2

    def test_exact_integer_ceiling(self, make_subject):
        """ceil(0.75 * 4) is 3, not 4."""
        assert required_attendance(make_subject(1, 3, 75)) == 2

    def test_full_target_is_one_step_bound(self, make_subject):
        """target=100 with one miss: ceil(1.0*11)=11, need 2 (lower bound only)."""
        assert required_attendance(make_subject(9, 10, 100)) == 2

    def test_zero_total(self, make_subject):
        assert required_attendance(make_subject(0, 0, 75)) == 0

    def test_on_track_needs_nothing(self, make_subject):
        assert required_attendance(make_subject(9, 10, 75)) == 0


class TestProject:
    """Tests for the combined projection."""

    def test_project_bundles_metrics(self, make_subject):
        subject = make_subject(9, 10, 75)
        projection = project(subject)

        assert projection.subject == subject
        assert projection.percentage == 90.0
        assert projection.status is AttendanceStatus.ON_TRACK
        assert projection.is_on_track
        assert projection.safe_absences == 2
        assert projection.required_attendance == 0

    def test_project_to_dict(self, make_subject):
        data = project(make_subject(5, 10, 75)).to_dict()

        assert data["id"] == "sub01"
        assert data["percentage"] == 50.0
        assert data["status"] == "critical"
        assert data["required_attendance"] == 4
        assert data["safe_absences"] == 0


class TestSummarize:
    """Tests for dashboard totals."""

    def test_empty(self):
        totals = summarize([])
        assert totals.total_subjects == 0
        assert totals.total_classes == 0
        assert totals.average_attendance == 0.0

    def test_average_counts_empty_subjects_as_zero(self, make_subject):
        totals = summarize([make_subject(8, 10), make_subject(0, 0, id="sub02")])

        assert totals.total_subjects == 2
        assert totals.total_classes == 10
        assert totals.average_attendance == 40.0

    def test_no_classes_anywhere(self, make_subject):
        totals = summarize([make_subject(0, 0), make_subject(0, 0, id="sub02")])
        assert totals.total_subjects == 2
        assert totals.average_attendance == 0.0
