from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math
from typing import Iterable, List, Optional, Tuple, Union

from gradetrack.core.grades import GradeAggregationError, normalize_grade, to_grade_point


Number = Union[int, float]


class InvalidCreditsError(GradeAggregationError):
    def __init__(self, subject_id: object, credits: object) -> None:
        super().__init__(f"Credits must be greater than 0 for subject {subject_id} (got {credits!r})")
        self.subject_id = subject_id
        self.credits = credits


class NoGradedSubjectsError(GradeAggregationError):
    def __init__(self) -> None:
        super().__init__("Enter at least one valid grade to calculate GPA")


class NoSemestersSelectedError(GradeAggregationError):
    def __init__(self, message: str = "Select at least one semester to calculate CGPA") -> None:
        super().__init__(message)


class DuplicateSemesterError(GradeAggregationError):
    def __init__(self, semesters: Iterable[int]) -> None:
        listed = ", ".join(str(sem) for sem in sorted(semesters))
        super().__init__(f"Semester selected more than once: {listed}")
        self.semesters = tuple(sorted(semesters))


class IncompleteSemesterRecordError(GradeAggregationError):
    def __init__(self, semesters: Iterable[Optional[int]]) -> None:
        listed = ", ".join(str(sem) for sem in semesters)
        super().__init__(f"Missing total credits/points for semester(s): {listed}")


class InvalidSemesterRecordError(GradeAggregationError):
    def __init__(self, semester: Optional[int], reason: str) -> None:
        super().__init__(f"Semester {semester} record is invalid: {reason}")
        self.semester = semester
        self.reason = reason


MAX_GRADE_POINT = 10
DISPLAY_PLACES = 2

# rounded history GPAs may sit up to half a hundredth away from points/credits
GPA_TOLERANCE = 0.005 + 1e-9


class CgpaMode(str, Enum):
    POINT_WEIGHTED = "point_weighted"
    GPA_AVERAGE = "gpa_average"


@dataclass(frozen=True)
class SubjectResult:
    subject_id: object
    credits: Number
    grade: Optional[str] = None
    code: str = ""
    name: str = ""


@dataclass(frozen=True)
class SemesterRecord:
    semester: Optional[int]
    gpa: float
    total_credits: Optional[Number] = None
    total_points: Optional[Number] = None
    created_at: Optional[datetime] = None

    @property
    def has_totals(self) -> bool:
        if self.total_credits is None or self.total_points is None:
            return False
        return self.total_credits > 0

    @property
    def display_gpa(self) -> float:
        return round(self.gpa, DISPLAY_PLACES)


@dataclass(frozen=True)
class CgpaResult:
    cgpa: float
    total_credits: Optional[Number]
    total_points: Optional[Number]
    semesters: Tuple[Optional[int], ...]
    mode: CgpaMode

    @property
    def display_cgpa(self) -> float:
        return round(self.cgpa, DISPLAY_PLACES)


def _as_total(values: List[Number]) -> Number:
    total = math.fsum(values)
    if all(isinstance(v, int) for v in values):
        return int(total)
    return total


def _check_credits(subject_id: object, credits: object) -> None:
    if isinstance(credits, bool) or not isinstance(credits, (int, float)):
        raise InvalidCreditsError(subject_id, credits)
    if not math.isfinite(credits) or credits <= 0:
        raise InvalidCreditsError(subject_id, credits)


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_semester_record(record: SemesterRecord) -> None:
    """Checks gpa and totals against the 0-10 scale and against each other."""
    semester = record.semester
    if not _is_finite_number(record.gpa) or not 0 <= record.gpa <= MAX_GRADE_POINT:
        raise InvalidSemesterRecordError(semester, f"GPA {record.gpa!r} is outside 0-{MAX_GRADE_POINT}")

    credits, points = record.total_credits, record.total_points
    if credits is not None and (not _is_finite_number(credits) or credits <= 0):
        raise InvalidSemesterRecordError(semester, f"total credits {credits!r} must be greater than 0")
    if points is not None and (not _is_finite_number(points) or points < 0):
        raise InvalidSemesterRecordError(semester, f"total points {points!r} must not be negative")
    if credits is None or points is None:
        return

    if points > MAX_GRADE_POINT * credits:
        raise InvalidSemesterRecordError(
            semester, f"total points {points} exceed {MAX_GRADE_POINT} x {credits} credits"
        )
    if abs(record.gpa - points / credits) > GPA_TOLERANCE:
        raise InvalidSemesterRecordError(
            semester, f"GPA {record.gpa} does not match {points} points / {credits} credits"
        )


def compute_gpa(subject_results: Iterable[SubjectResult], *, semester: Optional[int] = None) -> SemesterRecord:
    """
    GPA = Σ(credits * grade_point) / Σ(credits) over graded subjects.

    Ungraded subjects are left out of both sums rather than counted as zero.
    The returned gpa is unrounded; use display_gpa for presentation.
    """
    credit_terms: List[Number] = []
    point_terms: List[Number] = []

    for result in subject_results:
        if normalize_grade(result.grade) is None:
            continue
        _check_credits(result.subject_id, result.credits)
        point = to_grade_point(result.grade, subject_id=result.subject_id)
        credit_terms.append(result.credits)
        point_terms.append(result.credits * point)

    if not credit_terms:
        raise NoGradedSubjectsError()

    total_credits = _as_total(credit_terms)
    total_points = _as_total(point_terms)
    return SemesterRecord(
        semester=semester,
        gpa=total_points / total_credits,
        total_credits=total_credits,
        total_points=total_points,
    )


def compute_cgpa(semester_records: Iterable[SemesterRecord], *, mode: Optional[CgpaMode] = None) -> CgpaResult:
    """
    Point-weighted: CGPA = Σ(total_points) / Σ(total_credits).
    GPA average (fallback): CGPA = mean(gpa), unweighted by credits.

    Without an explicit mode the point-weighted form is used whenever every
    record carries its totals.
    """
    records = list(semester_records)
    if not records:
        raise NoSemestersSelectedError()

    seen = set()
    duplicates = set()
    for record in records:
        if record.semester is None:
            continue
        if record.semester in seen:
            duplicates.add(record.semester)
        seen.add(record.semester)
    if duplicates:
        raise DuplicateSemesterError(duplicates)

    for record in records:
        validate_semester_record(record)

    incomplete = [record.semester for record in records if not record.has_totals]
    if mode is None:
        mode = CgpaMode.GPA_AVERAGE if incomplete else CgpaMode.POINT_WEIGHTED
    elif mode == CgpaMode.POINT_WEIGHTED and incomplete:
        raise IncompleteSemesterRecordError(incomplete)

    semesters = tuple(sorted(records, key=lambda r: (r.semester is None, r.semester or 0)))
    semester_numbers = tuple(record.semester for record in semesters)

    if mode == CgpaMode.GPA_AVERAGE:
        return CgpaResult(
            cgpa=math.fsum(record.gpa for record in records) / len(records),
            total_credits=None,
            total_points=None,
            semesters=semester_numbers,
            mode=mode,
        )

    total_credits = _as_total([record.total_credits for record in records])
    total_points = _as_total([record.total_points for record in records])
    return CgpaResult(
        cgpa=total_points / total_credits,
        total_credits=total_credits,
        total_points=total_points,
        semesters=semester_numbers,
        mode=mode,
    )
