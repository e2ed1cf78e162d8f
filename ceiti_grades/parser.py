"""Extraction of student records from the portal's info page.

Every extractor takes the raw HTML (or an already parsed soup), never raises,
and returns one slice of the record. `parse_student_grades_data` ties them
together and is the only entry point callers need.
"""
import logging
import re

from bs4 import BeautifulSoup, Tag

from .calculations import (
    apply_exam_grades_to_averages,
    calculate_average,
    ensure_both_semesters_exist,
    format_average,
)
from .const import (
    ABSENCES_EXCUSED_LABEL,
    ABSENCES_SICK_LABEL,
    ABSENCES_TOTAL_LABEL,
    ABSENCES_UNEXCUSED_LABEL,
    EXAM_HEADER_LABEL,
    EXAM_TYPE_UNKNOWN,
    GRADE_PENDING_MARKER,
    GRADE_PLACEHOLDERS,
    GRADE_TBD,
    ROMAN_NUMERALS,
    SECTION_CURRENT_GRADES,
    SECTION_EXAMS,
    SECTION_PERSONAL_DATA,
    STUDENT_INFO_LABELS,
    SUBJECT_DENY_SUBSTRING,
    SUBJECT_DENYLIST,
)
from .models import (
    Absences,
    AnnualGrade,
    Exam,
    GradeSubject,
    SemesterGrades,
    StudentGrades,
    StudentInfo,
)
from .strategies import Strategy, first_match

_LOGGER = logging.getLogger(__name__)

CURRENT_PANEL_RE = re.compile(r"^collaps3e(\d+)$")
ANNUAL_PANEL_RE = re.compile(r"^collaps2e(\d+)$")
EXAM_PANEL_RE = re.compile(r"^collapse(\d+)$")

SEMESTER_HEADER_RE = re.compile(r"Semestrul\s+([IVX]+|[0-9]+)", re.IGNORECASE)
SEMESTER_1_RE = re.compile(r"Semestrul\s+(?:I|1)\b", re.IGNORECASE)
SEMESTER_2_RE = re.compile(r"Semestrul\s+(?:II|2)\b", re.IGNORECASE)
GRADE_TOKEN_RE = re.compile(r"^[0-9]+([.,][0-9]+)?$")
GRADE_SPLIT_RE = re.compile(r"[,\s]+")
EXAM_TYPE_RE = re.compile(r"^\((?P<type>[^)]+)\)\s*(?P<name>.*)$", re.DOTALL)


def _soup(markup: str | BeautifulSoup) -> BeautifulSoup:
    """Parse markup unless it is already a soup."""
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup or "", "lxml")


def _text(tag: Tag | None) -> str:
    """Return the whitespace-normalised text of a tag."""
    if tag is None:
        return ""
    return tag.get_text(" ", strip=True)


def _cells(row: Tag) -> list[Tag]:
    """Return the direct data cells of a row."""
    return row.find_all("td", recursive=False)


def roman_to_int(label: str | None) -> int | None:
    """Convert a roman study year label (I-VIII) to its ordinal."""
    if not label:
        return None
    return ROMAN_NUMERALS.get(label.strip().upper())


# Student info


def _find_labelled_value(scope: Tag, label: str) -> str | None:
    """Return the cell text next to a header cell holding label."""
    header = scope.find(lambda tag: tag.name == "th" and tag.get_text(strip=True) == label)
    if header is None:
        return None
    value = _text(header.find_next_sibling("td"))
    return value or None


def _labels_in(scope: Tag | None) -> dict[str, str]:
    """Collect every known personal data label found under scope."""
    if scope is None:
        return {}
    found = {}
    for field_name, label in STUDENT_INFO_LABELS.items():
        value = _find_labelled_value(scope, label)
        if value is not None:
            found[field_name] = value
    return found


STUDENT_INFO_STRATEGIES = (
    Strategy("personal-data-section", lambda soup: _labels_in(soup.find(id=SECTION_PERSONAL_DATA))),
    Strategy("whole-document", _labels_in),
)


def parse_student_info(markup: str | BeautifulSoup) -> StudentInfo:
    """Extract the personal data block; missing labels fall back to defaults."""
    try:
        soup = _soup(markup)
        values = first_match(STUDENT_INFO_STRATEGIES, soup).value or {}
        if not values:
            _LOGGER.warning("No personal data labels found")

        info = StudentInfo(**values)
        info.study_year_number = roman_to_int(info.study_year)
        return info

    except Exception as err:
        _LOGGER.error("Error parsing student info: %s", err, exc_info=True)
        return StudentInfo(name="Error", first_name="Loading", group="Failed to parse")


# Current grades


def _split_grades(text: str) -> list[str]:
    """Split a grades cell into its numeric tokens."""
    return [token for token in GRADE_SPLIT_RE.split(text) if GRADE_TOKEN_RE.match(token)]


def _is_subject_name(name: str, seen: set[str]) -> bool:
    """Return True for a new name that is not a header or absence label."""
    if not name or name in seen or name in SUBJECT_DENYLIST:
        return False
    return SUBJECT_DENY_SUBSTRING not in name.lower()


def _build_subjects(pairs: list[tuple[str, str]]) -> list[GradeSubject]:
    """Turn (name, grades text) pairs into unique, filtered subjects."""
    subjects = []
    seen: set[str] = set()
    for name, grades_text in pairs:
        if not _is_subject_name(name, seen):
            continue
        seen.add(name)

        grades = _split_grades(grades_text)
        average = calculate_average(grades)
        subjects.append(
            GradeSubject(
                name=name,
                grades=grades,
                average=average,
                displayed_average=format_average(average),
            )
        )
    return subjects


def _paragraph_rows(rows: list[Tag]) -> list[GradeSubject]:
    """Subjects from rows whose cells wrap their text in paragraphs."""
    pairs = []
    for row in rows:
        cells = _cells(row)
        if len(cells) != 2:
            continue
        name_p, grades_p = cells[0].find("p"), cells[1].find("p")
        if name_p is None or grades_p is None:
            continue
        pairs.append((_text(name_p), _text(grades_p)))
    return _build_subjects(pairs)


def _plain_rows(rows: list[Tag]) -> list[GradeSubject]:
    """Subjects from rows with plain text cells."""
    pairs = []
    for row in rows:
        cells = _cells(row)
        if len(cells) == 2:
            pairs.append((_text(cells[0]), _text(cells[1])))
    return _build_subjects(pairs)


SUBJECT_ROW_STRATEGIES = (
    Strategy("paragraph-cells", _paragraph_rows),
    Strategy("plain-cells", _plain_rows),
)


def parse_subjects(panel: Tag) -> list[GradeSubject]:
    """Extract the subject rows of one semester panel."""
    table = panel.find("table")
    rows = (table if table is not None else panel).find_all("tr")
    return first_match(SUBJECT_ROW_STRATEGIES, rows).value or []


def _labelled_number(panel: Tag, label: str) -> int | None:
    """Find a cell with the given label and read the number next to it."""
    cell = panel.find(
        lambda tag: tag.name in ("th", "td") and tag.get_text(strip=True) == label
    )
    if cell is None:
        return None
    match = re.search(r"\d+", _text(cell.find_next_sibling(["th", "td"])))
    return int(match.group()) if match else None


def parse_absences(panel: Tag) -> Absences | None:
    """Extract the absence breakdown of a semester panel, if it has a total row."""
    total = _labelled_number(panel, ABSENCES_TOTAL_LABEL)
    if total is None:
        return None

    return Absences(
        total=total,
        sick=_labelled_number(panel, ABSENCES_SICK_LABEL) or 0,
        excused=_labelled_number(panel, ABSENCES_EXCUSED_LABEL) or 0,
        unexcused=_labelled_number(panel, ABSENCES_UNEXCUSED_LABEL) or 0,
    )


def create_fallback_semesters() -> list[SemesterGrades]:
    """Placeholder pair used when no semester could be parsed."""
    return [
        SemesterGrades(semester=1, subjects=[GradeSubject(name="Semester I data not available")]),
        SemesterGrades(semester=2, subjects=[GradeSubject(name="Semester II data not available")]),
    ]


def _semester_number(text: str, index: int) -> int:
    """Resolve a header label (roman or arabic) to a semester number."""
    roman = ROMAN_NUMERALS.get(text.upper())
    if roman is not None:
        return roman
    if text.isdigit():
        return int(text)
    return index + 1


def _panel_for_header(header: Tag) -> Tag | None:
    """Return the panel right after a header, if there is one."""
    # The panel follows the heading block, or the h4 itself in flat markup
    for anchor in (header.find_parent("div"), header):
        if anchor is None:
            continue
        sibling = anchor.find_next_sibling(True)
        if sibling is not None and sibling.name == "div" and CURRENT_PANEL_RE.match(sibling.get("id", "")):
            return sibling
    return None


def _semester_headers(region: Tag) -> list[tuple[str, Tag]]:
    """Pair each semester header with its content panel."""
    headers = []
    used_panels: set[str] = set()
    for header in region.find_all("h4", class_="panel-title"):
        match = SEMESTER_HEADER_RE.search(_text(header))
        if not match:
            continue
        panel = _panel_for_header(header)
        if panel is None or panel["id"] in used_panels:
            _LOGGER.debug("No content panel after header %s", _text(header))
            continue
        used_panels.add(panel["id"])
        headers.append((match.group(1), panel))
    return headers


def _semesters_by_text(region: Tag) -> list[SemesterGrades]:
    """Detect semesters from section text when no headers are present."""
    content = _text(region)
    result = []
    if SEMESTER_1_RE.search(content):
        result.append(SemesterGrades(semester=1))
    if SEMESTER_2_RE.search(content):
        result.append(SemesterGrades(semester=2))

    if not result:
        return create_fallback_semesters()

    for semester in result:
        semester.subjects.append(
            GradeSubject(
                name=f"Data available for Semester {semester.semester} but couldn't be parsed"
            )
        )
    return result


def parse_current_grades(markup: str | BeautifulSoup) -> list[SemesterGrades]:
    """Extract the current situation panels; never returns an empty list."""
    try:
        soup = _soup(markup)
        region = soup.find(id=SECTION_CURRENT_GRADES)
        if region is None:
            _LOGGER.warning("Could not find %s section", SECTION_CURRENT_GRADES)
            return create_fallback_semesters()

        headers = _semester_headers(region)
        _LOGGER.debug("Found %d semester headers", len(headers))
        if not headers:
            _LOGGER.info("No semester headers found, searching section text")
            return _semesters_by_text(region)

        result = []
        for index, (semester_text, panel) in enumerate(headers):
            number = _semester_number(semester_text, index)
            result.append(
                SemesterGrades(
                    semester=number,
                    subjects=parse_subjects(panel),
                    absences=parse_absences(panel),
                )
            )

        if not any(semester.subjects for semester in result):
            _LOGGER.warning("No semester with subjects found, using placeholders")
            return create_fallback_semesters()

        return result

    except Exception as err:
        _LOGGER.error("Error parsing current grades: %s", err, exc_info=True)
        return create_fallback_semesters()


# Exams


def normalize_exam_grade(grade: str) -> tuple[str, bool]:
    """Return the grade and whether it is still a placeholder (upcoming exam)."""
    cleaned = grade.strip()
    lowered = cleaned.lower()
    if lowered in GRADE_PLACEHOLDERS or GRADE_PENDING_MARKER in lowered:
        return GRADE_TBD, True
    return cleaned, False


def _exam(exam_type: str, name: str, grade: str, semester: int) -> Exam:
    """Build an Exam with a normalised grade."""
    grade, upcoming = normalize_exam_grade(grade)
    return Exam(name=name.strip(), type=exam_type.strip(), grade=grade, semester=semester, upcoming=upcoming)


def _typed_exam_rows(panel: Tag, semester: int) -> list[Exam]:
    """Read rows whose name paragraph starts with "(Type)"."""
    exams = []
    for row in panel.find_all("tr"):
        cells = _cells(row)
        if len(cells) != 2:
            continue
        name_p, grade_p = cells[0].find("p"), cells[1].find("p")
        if name_p is None or grade_p is None:
            continue
        match = EXAM_TYPE_RE.match(_text(name_p))
        if not match or not match.group("name").strip():
            continue
        exams.append(_exam(match.group("type"), match.group("name"), _text(grade_p), semester))
    return exams


def _two_column_exam_rows(panel: Tag, semester: int) -> list[Exam]:
    """Read every two-cell row, typed or not, skipping the header row."""
    exams = []
    for row in panel.find_all("tr"):
        cells = _cells(row)
        if len(cells) != 2:
            continue
        full_name = _text(cells[0])
        if not full_name or full_name == EXAM_HEADER_LABEL:
            continue

        match = EXAM_TYPE_RE.match(full_name)
        if match:
            exam_type, name = match.group("type"), match.group("name")
        else:
            exam_type, name = EXAM_TYPE_UNKNOWN, full_name
        exams.append(_exam(exam_type, name, _text(cells[1]), semester))
    return exams


EXAM_ROW_STRATEGIES = (
    Strategy("typed-rows", _typed_exam_rows),
    Strategy("two-column-rows", _two_column_exam_rows),
)


def parse_exams(markup: str | BeautifulSoup) -> list[Exam]:
    """Extract exams, theses and practice grades from the exams section."""
    result: list[Exam] = []
    try:
        soup = _soup(markup)
        region = soup.find(id=SECTION_EXAMS)
        if region is None:
            _LOGGER.info("Could not find %s section", SECTION_EXAMS)
            return result

        for panel in region.find_all("div", id=EXAM_PANEL_RE):
            semester = int(EXAM_PANEL_RE.match(panel["id"]).group(1)) + 1
            found = first_match(EXAM_ROW_STRATEGIES, panel, semester)
            result.extend(found.value or [])

        return result

    except Exception as err:
        _LOGGER.error("Error parsing exams: %s", err, exc_info=True)
        return result


# Annual grades


def parse_annual_grades(markup: str | BeautifulSoup) -> list[AnnualGrade]:
    """Extract the six-column annual summary rows."""
    result: list[AnnualGrade] = []
    try:
        soup = _soup(markup)
        for panel in soup.find_all("div", class_="panel-collapse", id=ANNUAL_PANEL_RE):
            for row in panel.find_all("tr"):
                cells = _cells(row)
                if len(cells) != 6:
                    continue
                values = [_text(cell) or None for cell in cells]
                if values[0] is None:
                    continue
                result.append(AnnualGrade(*values))
        return result

    except Exception as err:
        _LOGGER.error("Error parsing annual grades: %s", err, exc_info=True)
        return result


# Active semester


def determine_current_semester(markup: str | BeautifulSoup) -> int | None:
    """Return the 1-based number of the expanded current situation panel."""
    try:
        soup = _soup(markup)
        for panel in soup.find_all("div", id=CURRENT_PANEL_RE):
            classes = panel.get("class") or []
            if "panel-collapse" in classes and "in" in classes:
                return int(CURRENT_PANEL_RE.match(panel["id"]).group(1)) + 1
    except Exception as err:
        _LOGGER.error("Error determining current semester: %s", err, exc_info=True)
    return None


# Entry point


def create_mock_data() -> StudentGrades:
    """Demo record returned when the page could not be parsed at all."""
    semesters = [
        SemesterGrades(
            semester=1,
            subjects=[
                GradeSubject("Mathematics", ["9", "8", "10", "9"], 9.0, "9.00"),
                GradeSubject("Programming", ["10", "10", "9", "10"], 9.75, "9.75"),
                GradeSubject("English", ["8", "9", "8"], 8.33, "8.33"),
            ],
            absences=Absences(total=5, sick=2, excused=2, unexcused=1),
        )
    ]
    return StudentGrades(
        student_info=StudentInfo(
            name="Demo",
            first_name="Student",
            study_year="2023-2024",
            group="S-01",
            specialization="Software Development",
        ),
        current_grades=ensure_both_semesters_exist(semesters),
        exams=[
            Exam("Mathematics Final", "Examen", "9", 1),
            Exam("Programming Project", "Practică", "10", 1),
        ],
        annual_grades=[],
        current_semester=1,
        is_mock=True,
    )


def parse_student_grades_data(html: str) -> StudentGrades:
    """Parse a full student record. Never raises; returns mock data on failure."""
    try:
        if not html or not html.strip():
            raise ValueError("Empty HTML content")

        soup = BeautifulSoup(html, "lxml")

        student_info = parse_student_info(soup)
        # Exams first: they re-weight the current averages
        exams = parse_exams(soup)
        current_grades = parse_current_grades(soup)
        apply_exam_grades_to_averages(current_grades, exams, student_info)

        grades = StudentGrades(
            student_info=student_info,
            current_grades=ensure_both_semesters_exist(current_grades),
            exams=exams,
            annual_grades=parse_annual_grades(soup),
            current_semester=determine_current_semester(soup),
        )

        _LOGGER.info(
            "Parsed record for %s %s: %d semesters, %d exams, %d annual grades",
            student_info.name,
            student_info.first_name,
            len(grades.current_grades),
            len(grades.exams),
            len(grades.annual_grades),
        )
        return grades

    except Exception as err:
        _LOGGER.error("Error parsing student data: %s", err, exc_info=True)
        return create_mock_data()
