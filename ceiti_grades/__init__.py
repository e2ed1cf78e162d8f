"""Parse and cache CEITI student grade records."""
from .calculations import (
    apply_exam_grades_to_averages,
    calculate_average,
    ensure_both_semesters_exist,
)
from .client import CancellationToken, PortalClient
from .coordinator import GradesCoordinator
from .events import DataUpdated, EventBus, RefreshEnded, RefreshStarted
from .exceptions import (
    CancellationError,
    CeitiGradesError,
    ConfigError,
    EmptyResponseError,
    NetworkError,
)
from .models import (
    Absences,
    AnnualGrade,
    CacheEntry,
    Exam,
    GradeSubject,
    SemesterGrades,
    StudentGrades,
    StudentInfo,
)
from .parser import parse_student_grades_data
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "Absences",
    "AnnualGrade",
    "CacheEntry",
    "CancellationError",
    "CancellationToken",
    "CeitiGradesError",
    "ConfigError",
    "DataUpdated",
    "EmptyResponseError",
    "EventBus",
    "Exam",
    "GradeSubject",
    "GradesCoordinator",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NetworkError",
    "PortalClient",
    "RefreshEnded",
    "RefreshStarted",
    "SemesterGrades",
    "StudentGrades",
    "StudentInfo",
    "apply_exam_grades_to_averages",
    "calculate_average",
    "ensure_both_semesters_exist",
    "parse_student_grades_data",
]
