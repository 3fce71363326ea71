import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
for path in (PROJECT_ROOT, PROJECT_ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tailoring_fixtures import (  # noqa: E402
    CLOUD_JOB_DESCRIPTION,
    ONPREM_RESUME,
    StubOracle,
    failing_oracle,
)

from resume_tailor.core.session_store import InMemorySessionStore  # noqa: E402
from resume_tailor.services.content_generator import ContentGenerator  # noqa: E402
from resume_tailor.services.errors import (  # noqa: E402
    NoResumeContent,
    OracleUnavailable,
    TruthfulnessViolation,
)
from resume_tailor.services.tailoring_service import TailoringService  # noqa: E402


def _cloud_analysis():
    service = TailoringService(InMemorySessionStore(), StubOracle())
    return service.build_job_analysis(CLOUD_JOB_DESCRIPTION, company="Fabrikam Analytics")


def _draft(summary: str, **overrides):
    draft = {
        "contact": {"name": "Jordan Avery", "title": "Senior Database Administrator"},
        "summary": summary,
        "experience": [
            {
                "title": "Senior Database Administrator",
                "company": "Northwind Health",
                "duration": "2018 - Present",
                "achievements": ["Reduced average query latency 45% through tuning of stored procedures."],
            }
        ],
        "skills": ["T-SQL"],
        "improvements": [],
    }
    draft.update(overrides)
    return draft


class ContentGeneratorTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.analysis = _cloud_analysis()

    def test_truthful_draft_is_accepted_first_time(self):
        oracle = StubOracle()
        content = ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)

        self.assertEqual(len(oracle.calls), 1)
        self.assertEqual(content.truthfulness["Azure SQL Database"], "omitted")
        self.assertEqual(content.truthfulness["High Availability & Disaster Recovery"], "hands-on")
        self.assertEqual(content.truthfulness["Airflow"], "familiar")
        self.assertIn("High Availability & Disaster Recovery", content.summary)
        self.assertNotIn("Azure SQL Database", content.resume_text())

    def test_oracle_receives_structured_payloads(self):
        oracle = StubOracle()
        ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)
        call = oracle.calls[0]

        self.assertEqual(call["purpose"], "tailor")
        self.assertIsInstance(call["instructions"], dict)
        self.assertIsInstance(call["context"], dict)
        self.assertEqual(call["context"]["resume_text"], ONPREM_RESUME)
        self.assertEqual(call["context"]["job"]["company"], "Fabrikam Analytics")
        keywords = call["instructions"]["keywords"]
        self.assertIn("High Availability & Disaster Recovery", keywords["hands_on"])
        self.assertIn("Airflow", keywords["familiar"])
        self.assertIn("azure sql database", keywords["banned"])
        self.assertIn("azure sql", keywords["banned"])
        self.assertNotIn("retry_notice", call["instructions"])

    def test_violation_triggers_one_retry_with_notice(self):
        oracle = StubOracle(responses=[_draft("DBA moving estates to Azure SQL Database.")])
        content = ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)

        self.assertEqual(len(oracle.calls), 2)
        notice = oracle.calls[1]["instructions"]["retry_notice"]
        self.assertEqual(notice["previous_violations"], ["Azure SQL Database"])
        self.assertNotIn("Azure SQL Database", content.resume_text())

    def test_second_violation_fails_the_request(self):
        bad = _draft("DBA with dbt and Airflow pipelines.")
        oracle = StubOracle(responses=[bad, dict(bad)])
        with self.assertRaises(TruthfulnessViolation) as ctx:
            ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)

        self.assertEqual(len(oracle.calls), 2)
        self.assertEqual(ctx.exception.terms, ["dbt"])
        self.assertEqual(ctx.exception.to_payload()["terms"], ["dbt"])

    def test_banned_term_in_improvements_counts(self):
        bad = _draft("Database administrator.", improvements=["Added Terraform to match the posting."])
        oracle = StubOracle(responses=[bad, dict(bad)])
        with self.assertRaises(TruthfulnessViolation) as ctx:
            ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)
        self.assertIn("Terraform", ctx.exception.terms)

    def test_oracle_errors_become_oracle_unavailable(self):
        with self.assertRaises(OracleUnavailable):
            ContentGenerator(failing_oracle()).generate(ONPREM_RESUME, self.analysis)
        with self.assertRaises(OracleUnavailable):
            ContentGenerator(StubOracle(error=ConnectionError("reset"))).generate(ONPREM_RESUME, self.analysis)

    def test_unusable_output_is_rejected(self):
        for response in ([], {}, {"summary": "", "skills": []}):
            with self.subTest(response=response):
                with self.assertRaises(OracleUnavailable) as ctx:
                    ContentGenerator(StubOracle(responses=[response])).generate(ONPREM_RESUME, self.analysis)
                self.assertEqual(ctx.exception.code, "oracle_unusable")

    def test_empty_resume_never_calls_the_oracle(self):
        oracle = StubOracle()
        with self.assertRaises(NoResumeContent):
            ContentGenerator(oracle).generate("   ", self.analysis)
        self.assertEqual(oracle.calls, [])

    def test_micro_edits_clean_glyphs_and_duplicates(self):
        content = ContentGenerator(StubOracle()).generate(ONPREM_RESUME, self.analysis)
        achievements = content.experience[0].achievements

        self.assertTrue(achievements[0].startswith("Led disaster recovery planning"))
        self.assertEqual(len(content.skills), len({skill.lower() for skill in content.skills}))
        self.assertTrue(any("bullet glyphs" in note for note in content.applied_micro_edits))
        self.assertTrue(any(note.startswith("Removed duplicate skill") for note in content.applied_micro_edits))

    def test_missing_hands_on_keyword_is_added_with_evidence(self):
        oracle = StubOracle(responses=[_draft("Database administrator.")])
        content = ContentGenerator(oracle).generate(ONPREM_RESUME, self.analysis)

        self.assertIn("High Availability & Disaster Recovery", content.skills)
        self.assertTrue(
            any(
                "Added canonical keyword 'High Availability & Disaster Recovery'" in note
                and "disaster recovery" in note
                for note in content.applied_micro_edits
            )
        )
        self.assertTrue(any("Airflow" in note for note in content.suggested_micro_edits))


if __name__ == "__main__":
    unittest.main()
