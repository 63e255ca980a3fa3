import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from gradetrack.config.logging_config import configure_logging
from gradetrack.config.settings import settings
from gradetrack.core.gpa import CgpaMode, SemesterRecord, SubjectResult, compute_cgpa, compute_gpa
from gradetrack.core.grades import GradeAggregationError
from gradetrack.core.report import render_cgpa_summary, render_grade_sheet


configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="GradeTrack API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SubjectPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject_id: Union[int, str] = Field(alias="subjectId")
    credits: Union[int, float]
    grade: Optional[str] = None
    code: str = ""
    name: str = ""


class GpaPayload(BaseModel):
    semester: Optional[int] = Field(default=None, ge=1)
    subjects: List[SubjectPayload] = Field(default_factory=list)


class SemesterReportPayload(GpaPayload):
    student: Optional[Dict[str, Any]] = None


class SemesterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    semester: int = Field(ge=1)
    gpa: Optional[float] = Field(default=None, ge=0, le=10)
    total_credits: Optional[Union[int, float]] = Field(default=None, alias="totalCredits")
    total_points: Optional[Union[int, float]] = Field(default=None, alias="totalPoints")


class CgpaPayload(BaseModel):
    semesters: List[SemesterPayload] = Field(default_factory=list)
    mode: Optional[CgpaMode] = None
    student: Optional[Dict[str, Any]] = None


def _subject_results(payload: GpaPayload) -> List[SubjectResult]:
    return [
        SubjectResult(
            subject_id=subject.subject_id,
            credits=subject.credits,
            grade=subject.grade,
            code=subject.code,
            name=subject.name,
        )
        for subject in payload.subjects
    ]


def _semester_record(payload: SemesterPayload) -> SemesterRecord:
    gpa = payload.gpa
    if gpa is None:
        if not payload.total_credits or payload.total_points is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Semester {payload.semester} needs a GPA or its total credits and points",
            )
        gpa = payload.total_points / payload.total_credits
    return SemesterRecord(
        semester=payload.semester,
        gpa=gpa,
        total_credits=payload.total_credits,
        total_points=payload.total_points,
    )


def _bad_request(exc: GradeAggregationError) -> HTTPException:
    logger.info("Rejected calculation: %s", exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/gpa")
def calculate_gpa(payload: GpaPayload) -> Dict:
    try:
        record = compute_gpa(_subject_results(payload), semester=payload.semester)
    except GradeAggregationError as exc:
        raise _bad_request(exc) from exc
    return {
        "semester": record.semester,
        "gpa": record.display_gpa,
        "totalCredits": record.total_credits,
        "totalPoints": record.total_points,
    }


@app.post("/cgpa")
def calculate_cgpa(payload: CgpaPayload) -> Dict:
    records = [_semester_record(item) for item in payload.semesters]
    try:
        result = compute_cgpa(records, mode=payload.mode)
    except GradeAggregationError as exc:
        raise _bad_request(exc) from exc
    return {
        "cgpa": result.display_cgpa,
        "totalCredits": result.total_credits,
        "totalPoints": result.total_points,
        "semesters": list(result.semesters),
        "mode": result.mode.value,
    }


@app.post("/reports/semester", response_class=PlainTextResponse)
def semester_report(payload: SemesterReportPayload) -> str:
    rows = _subject_results(payload)
    try:
        record = compute_gpa(rows, semester=payload.semester)
    except GradeAggregationError as exc:
        raise _bad_request(exc) from exc
    return render_grade_sheet(record, rows, student=payload.student)


@app.post("/reports/cgpa", response_class=PlainTextResponse)
def cgpa_report(payload: CgpaPayload) -> str:
    records = [_semester_record(item) for item in payload.semesters]
    try:
        result = compute_cgpa(records, mode=payload.mode)
    except GradeAggregationError as exc:
        raise _bad_request(exc) from exc
    return render_cgpa_summary(result, records, student=payload.student)
