from typing import Any, Iterable, List, Mapping, Optional, Sequence

from gradetrack.core.gpa import DISPLAY_PLACES, CgpaMode, CgpaResult, SemesterRecord, SubjectResult
from gradetrack.core.grades import GRADE_POINTS, is_failing, normalize_grade


def format_number(value: Any, digits: int = DISPLAY_PLACES) -> str:
    if value is None or isinstance(value, bool):
        return "-"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.{digits}f}"
    return str(value)


def _score(value: float) -> str:
    return f"{value:.{DISPLAY_PLACES}f}"


def _status(grade: Optional[str]) -> str:
    if normalize_grade(grade) is None:
        return "-"
    return "Failed" if is_failing(grade) else "Passed"


def _grade_text(grade: Optional[str]) -> str:
    canonical = normalize_grade(grade)
    if canonical is None:
        return "-"
    point = GRADE_POINTS.get(canonical)
    return f"{canonical} ({point if point is not None else '-'})"


def _table(headers: Sequence[str], rows: List[Sequence[str]]) -> List[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def line(cells: Sequence[str]) -> str:
        return " | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(cells)).rstrip()

    separator = "-+-".join("-" * width for width in widths)
    return [line(headers), separator, *(line(row) for row in rows)]


def _student_lines(student: Optional[Mapping[str, Any]]) -> List[str]:
    if not student:
        return []
    lines = []
    for label, key in (("Name", "name"), ("Register No", "registerNumber"), ("Department", "department"), ("Regulation", "regulation")):
        value = student.get(key)
        if isinstance(value, Mapping):
            value = value.get("name")
        if value:
            lines.append(f"{label}: {value}")
    return lines


def render_grade_sheet(
    record: SemesterRecord,
    rows: Iterable[SubjectResult],
    *,
    student: Optional[Mapping[str, Any]] = None,
) -> str:
    title = "GRADE SHEET"
    if record.semester is not None:
        title = f"{title} - SEMESTER {record.semester}"

    table_rows = [
        [
            str(index),
            row.code or "-",
            row.name or str(row.subject_id),
            format_number(row.credits),
            _grade_text(row.grade),
            _status(row.grade),
        ]
        for index, row in enumerate(rows, start=1)
    ]

    lines = [title, *_student_lines(student), ""]
    lines.extend(_table(("S.No", "Code", "Course Title", "Credits", "Grade", "Status"), table_rows))
    lines.extend(
        [
            "",
            f"GPA: {_score(record.display_gpa)}",
            f"Total Credits: {format_number(record.total_credits)}",
            f"Total Points: {format_number(record.total_points)}",
        ]
    )
    return "\n".join(lines) + "\n"


def render_cgpa_summary(
    result: CgpaResult,
    records: Iterable[SemesterRecord],
    *,
    student: Optional[Mapping[str, Any]] = None,
) -> str:
    selected = set(result.semesters)
    table_rows = [
        [
            str(record.semester),
            _score(record.display_gpa),
            format_number(record.total_credits),
            format_number(record.total_points),
        ]
        for record in sorted(records, key=lambda r: r.semester or 0)
        if record.semester in selected
    ]

    if result.mode == CgpaMode.POINT_WEIGHTED:
        basis = "credit-weighted (total points / total credits)"
    else:
        basis = "average of semester GPAs (credits not weighted)"

    lines = ["CGPA SUMMARY", *_student_lines(student), ""]
    lines.extend(_table(("Semester", "GPA", "Credits", "Points"), table_rows))
    lines.extend(
        [
            "",
            f"CGPA: {_score(result.display_cgpa)}",
            f"Total Credits: {format_number(result.total_credits)}",
            f"Total Points: {format_number(result.total_points)}",
            f"Basis: {basis}",
        ]
    )
    return "\n".join(lines) + "\n"
