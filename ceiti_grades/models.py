"""Data models for parsed student records."""
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class StudentInfo:
    """Personal data block of a student record."""

    name: str = "Unknown"
    first_name: str = "Student"
    patronymic: str = ""
    study_year: str = ""
    study_year_number: int | None = None
    group: str = ""
    specialization: str = ""
    curator: str | None = None
    department_head: str | None = None
    status: str | None = None


@dataclass
class GradeSubject:
    """A subject with its raw grade tokens and computed average."""

    name: str
    grades: list[str] = field(default_factory=list)
    average: float | None = None
    displayed_average: str = "-"


@dataclass
class Absences:
    """Absence breakdown for one semester."""

    total: int = 0
    sick: int = 0
    excused: int = 0
    unexcused: int = 0


@dataclass
class SemesterGrades:
    """Subjects and absences for one semester."""

    semester: int
    subjects: list[GradeSubject] = field(default_factory=list)
    absences: Absences | None = None


@dataclass
class Exam:
    """An exam, thesis or practice grade."""

    name: str
    type: str
    grade: str
    semester: int
    upcoming: bool = False


@dataclass
class AnnualGrade:
    """One row of the annual summary."""

    subject: str
    semester1_grade: str | None = None
    semester2_grade: str | None = None
    annual_grade: str | None = None
    evaluation_grade: str | None = None
    evaluation_type: str | None = None


@dataclass
class StudentGrades:
    """Complete parsed student record."""

    student_info: StudentInfo
    current_grades: list[SemesterGrades] = field(default_factory=list)
    exams: list[Exam] = field(default_factory=list)
    annual_grades: list[AnnualGrade] = field(default_factory=list)
    current_semester: int | None = None
    is_mock: bool = False

    def as_dict(self) -> dict[str, Any]:
        """Return the record as plain dicts and lists."""
        return asdict(self)


@dataclass(frozen=True)
class CacheEntry:
    """Raw HTML snapshot and its capture time in epoch milliseconds."""

    html: str | None
    timestamp: int | None
