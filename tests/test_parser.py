import unittest
from unittest.mock import patch

from ceiti_grades.parser import (
    create_fallback_semesters,
    determine_current_semester,
    normalize_exam_grade,
    parse_annual_grades,
    parse_current_grades,
    parse_exams,
    parse_student_grades_data,
    parse_student_info,
    roman_to_int,
)

from .fixtures import (
    ANNUAL_GRADES,
    CURRENT_GRADES,
    EMPTY_PANELS_GRADES,
    EXAMS,
    HEADERLESS_GRADES,
    LOOSE_EXAMS,
    MISSING_PANEL_GRADES,
    PERSONAL_DATA,
    PLAIN_CELLS_GRADES,
    SAMPLE_HTML,
    page,
)


class TestStudentInfo(unittest.TestCase):

    def test_personal_data_section(self):
        info = parse_student_info(page(PERSONAL_DATA))

        self.assertEqual(info.name, "Popescu")
        self.assertEqual(info.first_name, "Ion")
        self.assertEqual(info.patronymic, "Vasile")
        self.assertEqual(info.study_year, "II")
        self.assertEqual(info.study_year_number, 2)
        self.assertEqual(info.group, "P-2221")
        self.assertEqual(info.curator, "Rusu Ana")
        self.assertEqual(info.status, "Bugetar")
        self.assertIsNone(info.department_head)

    def test_labels_outside_the_section(self):
        html = page("<table><tr><th>Numele</th><td>Rusu</td></tr><tr><th>Anul de studii</th><td>III</td></tr></table>")
        info = parse_student_info(html)

        self.assertEqual(info.name, "Rusu")
        self.assertEqual(info.first_name, "Student")
        self.assertEqual(info.study_year_number, 3)

    def test_defaults_when_nothing_found(self):
        info = parse_student_info("<html><body><p>Nothing here</p></body></html>")
        self.assertEqual(info.name, "Unknown")
        self.assertEqual(info.first_name, "Student")
        self.assertIsNone(info.study_year_number)

    def test_roman_numerals(self):
        self.assertEqual(roman_to_int("IV"), 4)
        self.assertEqual(roman_to_int(" viii "), 8)
        self.assertIsNone(roman_to_int("IX"))
        self.assertIsNone(roman_to_int(""))


class TestCurrentGrades(unittest.TestCase):

    def test_panels_with_paragraph_cells(self):
        semesters = parse_current_grades(page(CURRENT_GRADES))

        self.assertEqual([s.semester for s in semesters], [3, 4])
        third = semesters[0]
        self.assertEqual([s.name for s in third.subjects], ["Matematica", "Fizica", "Educatia fizica"])
        self.assertEqual(third.subjects[0].grades, ["9", "8", "10"])
        self.assertEqual(third.subjects[0].average, 9.0)
        self.assertEqual(third.subjects[1].grades, ["7", "8"])
        self.assertEqual(third.subjects[1].displayed_average, "7.50")
        self.assertIsNone(third.subjects[2].average)
        self.assertEqual(third.subjects[2].displayed_average, "-")

    def test_absences(self):
        third, fourth = parse_current_grades(page(CURRENT_GRADES))

        self.assertEqual(third.absences.total, 12)
        self.assertEqual(third.absences.sick, 4)
        self.assertEqual(third.absences.excused, 3)
        self.assertEqual(third.absences.unexcused, 5)
        self.assertIsNone(fourth.absences)

    def test_plain_cells_fallback(self):
        semesters = parse_current_grades(PLAIN_CELLS_GRADES)

        self.assertEqual(len(semesters), 1)
        self.assertEqual(semesters[0].semester, 1)
        self.assertEqual([s.name for s in semesters[0].subjects], ["Chimia"])
        self.assertEqual(semesters[0].subjects[0].grades, ["6", "7"])
        self.assertEqual(semesters[0].subjects[0].average, 6.5)

    def test_header_without_panel_is_skipped(self):
        semesters = parse_current_grades(MISSING_PANEL_GRADES)

        self.assertEqual([s.semester for s in semesters], [2])
        self.assertEqual([s.name for s in semesters[0].subjects], ["Chimia"])

    def test_non_ascii_digits_are_not_grades(self):
        html = page(
            '<div id="situatia-curenta"><div class="panel-heading">'
            '<h4 class="panel-title"><a>Semestrul I</a></h4></div>'
            '<div id="collaps3e0" class="panel-collapse collapse"><table>'
            "<tr><td><p>Chimia</p></td><td><p>９, 8</p></td></tr>"
            "</table></div></div>"
        )
        subject = parse_current_grades(html)[0].subjects[0]

        self.assertEqual(subject.grades, ["8"])
        self.assertEqual(subject.average, 8.0)

    def test_missing_section_gives_placeholders(self):
        semesters = parse_current_grades(page(PERSONAL_DATA))
        self.assertEqual(
            [s.subjects[0].name for s in semesters],
            ["Semester I data not available", "Semester II data not available"],
        )

    def test_section_without_headers_searches_text(self):
        semesters = parse_current_grades(HEADERLESS_GRADES)

        self.assertEqual([s.semester for s in semesters], [1])
        self.assertEqual(
            semesters[0].subjects[0].name,
            "Data available for Semester 1 but couldn't be parsed",
        )

    def test_headers_without_subjects_give_placeholders(self):
        semesters = parse_current_grades(EMPTY_PANELS_GRADES)
        self.assertEqual(
            [s.subjects[0].name for s in semesters],
            [s.subjects[0].name for s in create_fallback_semesters()],
        )


class TestExams(unittest.TestCase):

    def test_typed_rows(self):
        exams = parse_exams(page(EXAMS))

        self.assertEqual(
            [(e.name, e.type, e.grade, e.semester) for e in exams],
            [
                ("Matematica", "Teza", "10", 3),
                ("Fizica", "Examen", "TBD", 3),
                ("Baze de date", "Examen", "8", 4),
            ],
        )
        self.assertFalse(exams[0].upcoming)
        self.assertTrue(exams[1].upcoming)

    def test_two_column_fallback(self):
        exams = parse_exams(LOOSE_EXAMS)

        self.assertEqual(len(exams), 2)
        self.assertEqual(exams[0].type, "Practică")
        self.assertEqual(exams[0].name, "Stagiu de practică")
        self.assertEqual(exams[0].grade, "TBD")
        self.assertTrue(exams[0].upcoming)
        self.assertEqual(exams[1].type, "Unknown")
        self.assertEqual(exams[1].name, "Proiect anual")
        self.assertEqual(exams[1].semester, 1)

    def test_missing_section(self):
        self.assertEqual(parse_exams(page(PERSONAL_DATA)), [])

    def test_placeholder_grades(self):
        self.assertEqual(normalize_exam_grade("---"), ("TBD", True))
        self.assertEqual(normalize_exam_grade(" "), ("TBD", True))
        self.assertEqual(normalize_exam_grade("tbd"), ("TBD", True))
        self.assertEqual(normalize_exam_grade("Pending"), ("TBD", True))
        self.assertEqual(normalize_exam_grade(" 9 "), ("9", False))


class TestAnnualAndActiveSemester(unittest.TestCase):

    def test_annual_rows(self):
        rows = parse_annual_grades(page(ANNUAL_GRADES))

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0].subject, "Matematica")
        self.assertEqual(rows[0].annual_grade, "9")
        self.assertIsNone(rows[0].evaluation_grade)
        self.assertIsNone(rows[0].evaluation_type)
        self.assertEqual(rows[1].evaluation_type, "Examen")

    def test_expanded_panel_is_current(self):
        self.assertEqual(determine_current_semester(page(CURRENT_GRADES)), 2)

    def test_no_expanded_panel(self):
        self.assertIsNone(determine_current_semester(EMPTY_PANELS_GRADES))


class TestFullRecord(unittest.TestCase):

    def test_sample_record(self):
        grades = parse_student_grades_data(SAMPLE_HTML)

        self.assertFalse(grades.is_mock)
        self.assertEqual(grades.student_info.name, "Popescu")
        self.assertEqual([s.semester for s in grades.current_grades], [1, 2, 3, 4])
        self.assertEqual(grades.current_grades[0].subjects[0].name, "No subjects available for Semester I")
        self.assertEqual(len(grades.exams), 3)
        self.assertEqual(len(grades.annual_grades), 2)
        self.assertEqual(grades.current_semester, 2)

        data = grades.as_dict()
        self.assertEqual(data["student_info"]["group"], "P-2221")
        self.assertEqual(data["current_grades"][2]["absences"]["sick"], 4)

    def test_exam_grades_reweight_averages(self):
        grades = parse_student_grades_data(SAMPLE_HTML)
        third = {s.name: s for s in grades.current_grades[2].subjects}
        fourth = {s.name: s for s in grades.current_grades[3].subjects}

        # Teza 10 on a 9.00 average
        self.assertEqual(third["Matematica"].average, 9.5)
        self.assertEqual(third["Matematica"].displayed_average, "9.50")
        # Exam still to come
        self.assertEqual(third["Fizica"].average, 7.5)
        # Examen 8 on a 9.50 average
        self.assertEqual(fourth["Baze de date"].average, 8.9)
        self.assertEqual(fourth["Matematica"].average, 8.0)

    def test_empty_input_gives_demo_record(self):
        for html in ("", "   \n"):
            grades = parse_student_grades_data(html)
            self.assertTrue(grades.is_mock)
            self.assertEqual(grades.student_info.name, "Demo")
            self.assertEqual([s.semester for s in grades.current_grades], [1, 2])

    def test_unexpected_error_gives_demo_record(self):
        with patch("ceiti_grades.parser.parse_exams", side_effect=RuntimeError("boom")):
            grades = parse_student_grades_data(SAMPLE_HTML)
        self.assertTrue(grades.is_mock)


if __name__ == "__main__":
    unittest.main()
