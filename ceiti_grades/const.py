"""Constants for the CEITI grades library."""

# Configuration
CONF_BASE_URL = "base_url"
CONF_LOGIN_PATH = "login_path"
CONF_INFO_PATH = "info_path"
CONF_STUDENT_ID = "student_id"
CONF_CACHE_FILE = "cache_file"
CONF_RETRY_DELAYS = "retry_delays"
CONF_STALE_DAYS = "stale_days"

# Defaults
DEFAULT_BASE_URL = "https://api.ceiti.md"
DEFAULT_LOGIN_PATH = "/date/login"
DEFAULT_INFO_PATH = "/index.php/date/info/"
DEFAULT_CACHE_FILE = "ceiti_grades_cache.json"
DEFAULT_RETRY_DELAYS: tuple[float, ...] = ()
DEFAULT_STALE_DAYS = 7

# IDNP: 13 digit personal identifier used by the portal
IDENTITY_PATTERN = r"^\d{13}$"

# Storage keys
ACTIVE_IDENTITY_KEY = "@planner_idnp"
HTML_KEY_PREFIX = "@grades_html_"
TIMESTAMP_KEY_PREFIX = "@grades_timestamp_"

# Page sections
SECTION_PERSONAL_DATA = "date-personale"
SECTION_CURRENT_GRADES = "situatia-curenta"
SECTION_EXAMS = "note-1"

# Personal data labels (field -> label text on the page)
STUDENT_INFO_LABELS = {
    "name": "Numele",
    "first_name": "Prenumele",
    "patronymic": "Patronimicul",
    "study_year": "Anul de studii",
    "group": "Grupa",
    "specialization": "Specialitatea",
    "curator": "Diriginte",
    "department_head": "Șef secție",
    "status": "Statut",
}

# Absence labels
ABSENCES_TOTAL_LABEL = "Absențe totale"
ABSENCES_SICK_LABEL = "Bolnav"
ABSENCES_EXCUSED_LABEL = "Motivate"
ABSENCES_UNEXCUSED_LABEL = "Nemotivate"

# First cells that never name a subject
SUBJECT_DENYLIST = frozenset(
    {
        "Denumire",
        "Semestrul II",
        "Note",
        "Denumirea Obiectelor",
        ABSENCES_SICK_LABEL,
        ABSENCES_EXCUSED_LABEL,
        ABSENCES_UNEXCUSED_LABEL,
    }
)
SUBJECT_DENY_SUBSTRING = "absențe"
EXAM_HEADER_LABEL = "Denumirea Obiectelor"

ROMAN_NUMERALS = {
    "I": 1,
    "II": 2,
    "III": 3,
    "IV": 4,
    "V": 5,
    "VI": 6,
    "VII": 7,
    "VIII": 8,
}

# Exam types
EXAM_TYPE_EXAM = "examen"
EXAM_TYPE_THESIS = "teza"
EXAM_TYPE_UNKNOWN = "Unknown"
EXAM_WEIGHT_AVERAGE = 0.6
EXAM_WEIGHT_EXAM = 0.4

# Placeholder grade tokens
GRADE_TBD = "TBD"
GRADE_PLACEHOLDERS = frozenset({"---", "", "tbd"})
GRADE_PENDING_MARKER = "pending"

NO_AVERAGE = "-"
