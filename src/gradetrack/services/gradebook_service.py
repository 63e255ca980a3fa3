from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from gradetrack.core.gpa import (
    CgpaMode,
    CgpaResult,
    DuplicateSemesterError,
    NoSemestersSelectedError,
    SemesterRecord,
    SubjectResult,
    compute_cgpa,
    compute_gpa,
)
from gradetrack.core.grades import is_graded, normalize_grade
from gradetrack.core.report import render_cgpa_summary, render_grade_sheet
from gradetrack.services.api_adapter import (
    RecordFormatError,
    SubjectInfo,
    attach_grades,
    latest_by_semester,
    normalize_gpa_response,
    normalize_history_entry,
    normalize_semester_details,
    normalize_subjects,
)
from gradetrack.services.records_api import RecordsApiService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SemesterOutcome:
    record: SemesterRecord
    rows: Tuple[SubjectResult, ...]
    server_record: Optional[SemesterRecord] = None


class GradebookService:
    def __init__(self, api: RecordsApiService) -> None:
        self.api = api

    @classmethod
    def from_settings(cls, session=None) -> "GradebookService":
        return cls(RecordsApiService.from_settings(session))

    def load_semester_subjects(
        self,
        regulation_id: int,
        department_id: int,
        semester: int,
    ) -> Tuple[List[SubjectInfo], int]:
        subjects = normalize_subjects(self.api.get_subjects(regulation_id, department_id, semester))
        elective_count = normalize_semester_details(
            self.api.get_semester_details(department_id, regulation_id, semester)
        )
        if not subjects:
            logger.info("No subjects configured for semester %s", semester)
        return subjects, elective_count

    def calculate_semester(
        self,
        regulation_id: int,
        department_id: int,
        semester: int,
        grades: Mapping[Any, Optional[str]],
        *,
        submit: bool = True,
    ) -> SemesterOutcome:
        subjects, _ = self.load_semester_subjects(regulation_id, department_id, semester)
        rows = attach_grades(subjects, grades)
        record = compute_gpa(rows, semester=semester)

        server_record = None
        if submit:
            graded = [
                {"subjectId": row.subject_id, "grade": normalize_grade(row.grade)}
                for row in rows
                if is_graded(row.grade)
            ]
            response = self.api.calculate_gpa(semester, graded)
            try:
                server_record = normalize_gpa_response(response, semester)
            except RecordFormatError as exc:
                logger.warning("Unreadable GPA response for semester %s: %s", semester, exc)
            else:
                self._check_agreement(record, server_record)

        return SemesterOutcome(record=record, rows=tuple(rows), server_record=server_record)

    @staticmethod
    def _check_agreement(local: SemesterRecord, remote: SemesterRecord) -> None:
        if remote.has_totals and (
            remote.total_credits != local.total_credits or remote.total_points != local.total_points
        ):
            logger.warning(
                "Backend totals for semester %s differ: credits %s/%s points %s/%s",
                local.semester,
                remote.total_credits,
                local.total_credits,
                remote.total_points,
                local.total_points,
            )
        elif abs(remote.gpa - local.gpa) >= 0.005:
            logger.warning("Backend GPA for semester %s differs: %.2f vs %.2f", local.semester, remote.gpa, local.gpa)

    def history(self) -> List[SemesterRecord]:
        records = []
        for entry in self.api.get_history():
            try:
                records.append(normalize_history_entry(entry))
            except RecordFormatError as exc:
                logger.warning("Skipping history entry: %s", exc)
        return latest_by_semester(records)

    def calculate_cgpa(
        self,
        semesters: Optional[Iterable[int]] = None,
        *,
        mode: Optional[CgpaMode] = None,
    ) -> Tuple[CgpaResult, List[SemesterRecord]]:
        available = {record.semester: record for record in self.history()}

        if semesters is None:
            selected = sorted(available)
        else:
            selected = [int(sem) for sem in semesters]
            duplicates = {sem for sem in selected if selected.count(sem) > 1}
            if duplicates:
                raise DuplicateSemesterError(duplicates)
            missing = [sem for sem in selected if sem not in available]
            if missing:
                listed = ", ".join(str(sem) for sem in missing)
                raise NoSemestersSelectedError(f"No GPA recorded for semester(s): {listed}")

        records = [available[sem] for sem in selected]
        result = compute_cgpa(records, mode=mode)
        if result.mode == CgpaMode.GPA_AVERAGE:
            logger.info("CGPA for semesters %s computed as an unweighted GPA average", list(result.semesters))
        return result, records

    def semester_report(
        self,
        regulation_id: int,
        department_id: int,
        semester: int,
        grades: Mapping[Any, Optional[str]],
        *,
        student: Optional[Mapping[str, Any]] = None,
    ) -> str:
        outcome = self.calculate_semester(regulation_id, department_id, semester, grades, submit=False)
        return render_grade_sheet(outcome.record, outcome.rows, student=student)

    def cgpa_report(
        self,
        semesters: Optional[Iterable[int]] = None,
        *,
        mode: Optional[CgpaMode] = None,
        student: Optional[Mapping[str, Any]] = None,
    ) -> str:
        result, records = self.calculate_cgpa(semesters, mode=mode)
        return render_cgpa_summary(result, records, student=student)

