import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
for path in (PROJECT_ROOT, PROJECT_ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tailoring_fixtures import ONPREM_RESUME  # noqa: E402

from resume_tailor.schemas.tailoring import KeywordBuckets, TailoredContent  # noqa: E402
from resume_tailor.services.coverage import build_coverage_report, coverage_for_text  # noqa: E402


def _buckets() -> KeywordBuckets:
    return KeywordBuckets(
        core_tech=["Azure SQL Database", "High Availability & Disaster Recovery"],
        responsibilities=["On-Call Support", "Data Pipelines"],
        tools=["Airflow", "PowerShell"],
    )


class CoverageTests(unittest.TestCase):
    def test_matched_and_missing_partition_the_buckets(self):
        report = coverage_for_text(ONPREM_RESUME, _buckets())

        self.assertEqual(
            report.matched_keywords,
            ["High Availability & Disaster Recovery", "On-Call Support", "PowerShell"],
        )
        self.assertEqual(report.missing_keywords, ["Azure SQL Database", "Data Pipelines", "Airflow"])
        self.assertFalse(set(report.matched_keywords) & set(report.missing_keywords))
        self.assertEqual(
            sorted(report.matched_keywords + report.missing_keywords), sorted(_buckets().all_keywords())
        )

    def test_report_is_stable_for_the_same_content(self):
        content = TailoredContent(summary="On-call DBA; PowerShell automation.", skills=["PowerShell"])
        first = build_coverage_report(content, _buckets())
        second = build_coverage_report(content, _buckets())
        self.assertEqual(first, second)

    def test_levels_default_to_content_and_skip_unknown_keywords(self):
        content = TailoredContent(
            summary="PowerShell automation.",
            truthfulness={"PowerShell": "hands-on", "Airflow": "familiar", "COBOL": "omitted"},
        )
        report = build_coverage_report(content, _buckets())
        self.assertEqual(report.truthfulness_level, {"PowerShell": "hands-on", "Airflow": "familiar"})

        explicit = build_coverage_report(content, _buckets(), {"Azure SQL Database": "omitted"})
        self.assertEqual(explicit.truthfulness_level, {"Azure SQL Database": "omitted"})

    def test_empty_buckets(self):
        report = coverage_for_text(ONPREM_RESUME, KeywordBuckets())
        self.assertEqual(report.matched_keywords, [])
        self.assertEqual(report.missing_keywords, [])


if __name__ == "__main__":
    unittest.main()
