"""Grade computations: averages, exam weighting and semester bookkeeping."""
from datetime import timedelta
from decimal import ROUND_DOWN, Decimal
import logging
import math
import re

from .const import (
    EXAM_TYPE_EXAM,
    EXAM_TYPE_THESIS,
    EXAM_WEIGHT_AVERAGE,
    EXAM_WEIGHT_EXAM,
    DEFAULT_STALE_DAYS,
    NO_AVERAGE,
)
from .models import Exam, GradeSubject, SemesterGrades, StudentGrades, StudentInfo

_LOGGER = logging.getLogger(__name__)

_GRADE_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")

_SEMESTER_NAMES = {1: "I", 2: "II"}


def parse_grade(token: str | None) -> float | None:
    """Parse a grade token such as "9", "9.5" or "9,5"."""
    if not token:
        return None

    cleaned = token.strip().replace(",", ".", 1)
    if _GRADE_RE.match(cleaned):
        return float(cleaned)
    return None


def truncate(value: float, places: int = 2) -> float:
    """Cut a value down to the given decimal places without rounding.

    The value is rounded to 10 places first so float noise such as
    8.299999999999999 truncates to 8.29 only when it really is below 8.30.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(round(value, 10))).quantize(quantum, rounding=ROUND_DOWN))


def format_average(average: float | None) -> str:
    """Return the display string for an average."""
    if average is None:
        return NO_AVERAGE
    return f"{average:.2f}"


def calculate_average(grades: list[str]) -> float | None:
    """Average the numeric grade tokens, truncated to two decimals."""
    values = [g for g in (parse_grade(token) for token in grades) if g is not None]
    if not values:
        return None
    return truncate(sum(values) / len(values))


def current_year_semesters(study_year: int | None) -> tuple[int, int]:
    """Return the two semester numbers of the given study year."""
    year = study_year or 1
    return (2 * year - 1, 2 * year)


def find_matching_exam(subject_name: str, exams: list[Exam]) -> Exam | None:
    """Return the first exam whose name contains the subject, or vice versa."""
    subject_lower = subject_name.lower()
    for exam in exams:
        exam_lower = exam.name.lower()
        if subject_lower in exam_lower or exam_lower in subject_lower:
            return exam
    return None


def weighted_average(average: float, exam: Exam) -> float | None:
    """Combine a subject average with an exam grade, or None if it doesn't apply."""
    exam_grade = parse_grade(exam.grade)
    if exam_grade is None:
        return None

    exam_type = exam.type.lower()
    if exam_type == EXAM_TYPE_THESIS:
        return truncate((average + exam_grade) / 2)
    if exam_type == EXAM_TYPE_EXAM:
        return truncate(average * EXAM_WEIGHT_AVERAGE + exam_grade * EXAM_WEIGHT_EXAM)
    return None


def apply_exam_grades_to_averages(
    semesters: list[SemesterGrades],
    exams: list[Exam],
    student_info: StudentInfo | None = None,
) -> None:
    """Re-weight subject averages with matching exam grades, in place.

    Only the semesters of the student's current study year are touched.
    """
    study_year = student_info.study_year_number if student_info else None
    window = current_year_semesters(study_year)

    for semester in semesters:
        if semester.semester not in window:
            continue

        semester_exams = [exam for exam in exams if exam.semester == semester.semester]
        if not semester_exams:
            continue

        for subject in semester.subjects:
            if subject.average is None:
                continue

            exam = find_matching_exam(subject.name, semester_exams)
            if exam is None:
                continue

            new_average = weighted_average(subject.average, exam)
            if new_average is None:
                continue

            _LOGGER.debug(
                "Applied %s grade %s to %s: %s -> %s",
                exam.type,
                exam.grade,
                subject.name,
                subject.average,
                new_average,
            )
            subject.average = new_average
            subject.displayed_average = format_average(new_average)


def _placeholder_semester(number: int) -> SemesterGrades:
    """Semester holding only a "no subjects" marker."""
    label = _SEMESTER_NAMES.get(number, str(number))
    return SemesterGrades(
        semester=number,
        subjects=[GradeSubject(name=f"No subjects available for Semester {label}")],
    )


def ensure_both_semesters_exist(semesters: list[SemesterGrades]) -> list[SemesterGrades]:
    """Return the semesters with unique numbers, 1 and 2 present, sorted."""
    unique: dict[int, SemesterGrades] = {}
    for semester in semesters:
        if semester.semester in unique:
            _LOGGER.debug("Dropping duplicate semester %d", semester.semester)
            continue
        unique[semester.semester] = semester

    for number in (1, 2):
        if number not in unique:
            unique[number] = _placeholder_semester(number)

    return sorted(unique.values(), key=lambda s: s.semester)


def semester_average(semester: SemesterGrades) -> float | None:
    """Mean of the defined subject averages of a semester."""
    averages = [s.average for s in semester.subjects if s.average is not None]
    if not averages:
        return None
    return round(sum(averages) / len(averages), 2)


def semester_averages(grades: StudentGrades) -> list[dict[str, str | int]]:
    """Semester averages for every semester that has at least one average."""
    result = []
    for semester in grades.current_grades:
        average = semester_average(semester)
        if average is not None:
            result.append({"semester": semester.semester, "average": format_average(average)})
    return result


def format_semester_label(semester_number: int) -> str:
    """Label a semester ordinal by study year, e.g. 3 -> "Year 2, Semester 1"."""
    year = math.ceil(semester_number / 2)
    in_year = 2 if semester_number % 2 == 0 else 1
    return f"Year {year}, Semester {in_year}"


def is_stale(timestamp: int | None, now: int, days: int = DEFAULT_STALE_DAYS) -> bool:
    """Return True when an epoch-ms timestamp is at least `days` old."""
    if timestamp is None:
        return False
    age = timedelta(milliseconds=now - timestamp)
    return age >= timedelta(days=days)
