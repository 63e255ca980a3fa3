from dataclasses import dataclass
from datetime import datetime
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from gradetrack.core.gpa import InvalidSemesterRecordError, SemesterRecord, SubjectResult, validate_semester_record


class RecordFormatError(Exception):
    pass


GPA_FIELDS = ("gpa", "GPA", "gpaValue", "gradePointAverage", "result", "cgpa")
CREDIT_FIELDS = ("totalCredits", "total_credits")
POINT_FIELDS = ("totalPoints", "total_points")
CREATED_FIELDS = ("createdAt", "created_at")


@dataclass(frozen=True)
class SubjectInfo:
    id: object
    code: str
    name: str
    credits: float
    type: str = "CORE"
    is_elective: bool = False


def _first_present(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def normalize_subject(payload: Mapping[str, Any]) -> SubjectInfo:
    if not isinstance(payload, Mapping):
        raise RecordFormatError("Subject entry must be an object")

    subject_id = payload.get("id", payload.get("subjectId"))
    if subject_id is None or subject_id == "":
        raise RecordFormatError("Subject entry is missing id")

    credits = _to_number(payload.get("credits"))
    if credits is None:
        raise RecordFormatError(f"Subject {subject_id} has invalid credits")

    is_elective = payload.get("isElective", payload.get("is_elective", False))
    subject_type = str(payload.get("type") or ("ELECTIVE" if is_elective else "CORE"))

    return SubjectInfo(
        id=subject_id,
        code=str(payload.get("code") or ""),
        name=str(payload.get("name") or ""),
        credits=credits,
        type=subject_type,
        is_elective=bool(is_elective),
    )


def normalize_subjects(payload: Any) -> List[SubjectInfo]:
    if not isinstance(payload, list):
        return []
    return [normalize_subject(item) for item in payload]


def normalize_semester_details(payload: Any) -> int:
    if not isinstance(payload, Mapping):
        return 0
    value = _to_number(_first_present(payload, ("electiveCount", "elective_count")))
    return int(value) if value is not None and value > 0 else 0


def normalize_history_entry(payload: Mapping[str, Any]) -> SemesterRecord:
    """
    Folds the field-name variants seen across backend revisions into a
    SemesterRecord. Placeholder totals such as "-" become None.
    """
    if not isinstance(payload, Mapping):
        raise RecordFormatError("History entry must be an object")

    semester = _to_number(payload.get("semester"))
    if semester is None or semester < 1 or not float(semester).is_integer():
        raise RecordFormatError(f"History entry has invalid semester: {payload.get('semester')!r}")

    gpa = _to_number(_first_present(payload, GPA_FIELDS))
    if gpa is None:
        raise RecordFormatError(f"History entry for semester {int(semester)} has no GPA")
    if not 0 <= gpa <= 10:
        raise RecordFormatError(f"GPA {gpa} for semester {int(semester)} is outside 0-10")

    record = SemesterRecord(
        semester=int(semester),
        gpa=float(gpa),
        total_credits=_to_number(_first_present(payload, CREDIT_FIELDS)),
        total_points=_to_number(_first_present(payload, POINT_FIELDS)),
        created_at=_parse_datetime(_first_present(payload, CREATED_FIELDS)),
    )
    try:
        validate_semester_record(record)
    except InvalidSemesterRecordError as exc:
        raise RecordFormatError(str(exc)) from exc
    return record


def normalize_gpa_response(payload: Any, semester: Optional[int] = None) -> SemesterRecord:
    if not isinstance(payload, Mapping):
        raise RecordFormatError("GPA response must be an object")
    data: Dict[str, Any] = dict(payload)
    if data.get("semester") is None:
        data["semester"] = semester
    return normalize_history_entry(data)


def latest_by_semester(records: Iterable[SemesterRecord]) -> List[SemesterRecord]:
    """Keeps the newest record per semester, ordered by semester."""
    latest: Dict[int, SemesterRecord] = {}
    for record in records:
        current = latest.get(record.semester)
        if current is None or _is_newer(record, current):
            latest[record.semester] = record
    return [latest[sem] for sem in sorted(latest)]


def _is_newer(candidate: SemesterRecord, current: SemesterRecord) -> bool:
    if candidate.created_at is None:
        return current.created_at is None
    if current.created_at is None:
        return True
    try:
        return candidate.created_at >= current.created_at
    except TypeError:
        # naive vs aware timestamps
        return candidate.created_at.replace(tzinfo=None) >= current.created_at.replace(tzinfo=None)


def attach_grades(subjects: Iterable[SubjectInfo], grades: Mapping[Any, Optional[str]]) -> List[SubjectResult]:
    keyed = {str(key): value for key, value in grades.items()}
    return [
        SubjectResult(
            subject_id=subject.id,
            credits=subject.credits,
            grade=keyed.get(str(subject.id)),
            code=subject.code,
            name=subject.name,
        )
        for subject in subjects
    ]
