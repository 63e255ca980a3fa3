from typing import Dict, Optional


class GradeAggregationError(ValueError):
    pass


class InvalidGradeError(GradeAggregationError):
    def __init__(self, subject_id: object, symbol: object) -> None:
        super().__init__(f"Unsupported grade '{symbol}' for subject {subject_id}")
        self.subject_id = subject_id
        self.symbol = symbol


GRADE_POINTS: Dict[str, int] = {
    "O": 10,
    "A+": 9,
    "A": 8,
    "B+": 7,
    "B": 6,
    "C": 5,
    "U": 0,
    "RA": 0,
}

GRADE_ALIASES: Dict[str, str] = {
    "RA(0)": "U",
}

NO_GRADE_MARKERS = frozenset({"", "NOT_HAVE"})

FAILING_GRADES = frozenset({"U", "RA"})


def normalize_grade(symbol: Optional[str]) -> Optional[str]:
    """
    Returns the canonical grade symbol, or None when no grade is assigned.
    Unknown symbols are returned upper-cased so the caller can reject them.
    """
    if symbol is None:
        return None
    text = str(symbol).strip().upper()
    if text in NO_GRADE_MARKERS:
        return None
    return GRADE_ALIASES.get(text, text)


def is_graded(symbol: Optional[str]) -> bool:
    return normalize_grade(symbol) is not None


def to_grade_point(symbol: str, *, subject_id: object = None) -> int:
    canonical = normalize_grade(symbol)
    try:
        return GRADE_POINTS[canonical]
    except KeyError as exc:
        raise InvalidGradeError(subject_id, symbol) from exc


def is_failing(symbol: Optional[str]) -> bool:
    return normalize_grade(symbol) in FAILING_GRADES
