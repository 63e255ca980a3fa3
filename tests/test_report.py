import unittest

from gradetrack.core.gpa import SemesterRecord, SubjectResult, compute_cgpa, compute_gpa
from gradetrack.core.report import format_number, render_cgpa_summary, render_grade_sheet


class ReportTests(unittest.TestCase):
    def test_format_number(self):
        self.assertEqual(format_number(22), "22")
        self.assertEqual(format_number(22.0), "22")
        self.assertEqual(format_number(17.5), "17.50")
        self.assertEqual(format_number(None), "-")

    def test_grade_sheet_rows_and_totals(self):
        rows = [
            SubjectResult(1, 3, "O", code="CS3351", name="Digital Principles"),
            SubjectResult(2, 4, "RA", code="CS3352", name="Foundations of Data Science"),
            SubjectResult(3, 2, None, code="CS3361", name="Data Science Lab"),
        ]
        record = compute_gpa(rows, semester=3)
        sheet = render_grade_sheet(record, rows, student={"name": "Anu", "department": {"name": "CSE"}})

        self.assertTrue(sheet.startswith("GRADE SHEET - SEMESTER 3\n"))
        self.assertIn("Department: CSE", sheet)
        self.assertIn("O (10)", sheet)
        self.assertIn("RA (0)", sheet)
        self.assertIn("Failed", sheet)
        self.assertIn("Passed", sheet)
        self.assertIn("GPA: 4.29", sheet)
        self.assertIn("Total Credits: 7", sheet)
        self.assertIn("Total Points: 30", sheet)

    def test_cgpa_summary_states_basis(self):
        records = [SemesterRecord(1, 8.0), SemesterRecord(2, 9.0)]
        summary = render_cgpa_summary(compute_cgpa(records), records)
        self.assertIn("CGPA: 8.50", summary)
        self.assertIn("Total Points: -", summary)
        self.assertIn("average of semester GPAs", summary)

        weighted = [SemesterRecord(1, 9.0, 20, 180), SemesterRecord(2, 9.0, 18, 162)]
        summary = render_cgpa_summary(compute_cgpa(weighted), weighted)
        self.assertIn("Total Credits: 38", summary)
        self.assertIn("credit-weighted", summary)


if __name__ == "__main__":
    unittest.main()
