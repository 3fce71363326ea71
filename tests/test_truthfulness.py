import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
for path in (PROJECT_ROOT, PROJECT_ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tailoring_fixtures import ONPREM_RESUME  # noqa: E402

from resume_tailor.features.truthfulness import (  # noqa: E402
    assign_truth_levels,
    banned_terms,
    find_violations,
)
from resume_tailor.schemas.tailoring import KeywordBuckets  # noqa: E402


def _buckets() -> KeywordBuckets:
    return KeywordBuckets(
        core_tech=[
            "Azure SQL Database",
            "High Availability & Disaster Recovery",
            "SQL Server",
            "Geo-Replication",
            "Replication",
        ],
        tools=["Airflow", "dbt", "Terraform", "PowerShell"],
    )


class TruthLevelTests(unittest.TestCase):
    def setUp(self):
        self.levels = assign_truth_levels(ONPREM_RESUME, _buckets())

    def test_every_keyword_gets_exactly_one_level(self):
        self.assertEqual(set(self.levels), set(_buckets().all_keywords()))

    def test_alias_in_resume_counts_as_hands_on(self):
        self.assertEqual(self.levels["High Availability & Disaster Recovery"], "hands-on")
        self.assertEqual(self.levels["SQL Server"], "hands-on")
        self.assertEqual(self.levels["Replication"], "hands-on")
        self.assertEqual(self.levels["PowerShell"], "hands-on")

    def test_related_term_only_counts_as_familiar(self):
        self.assertEqual(self.levels["Airflow"], "familiar")

    def test_unsupported_keywords_are_omitted(self):
        for keyword in ("Azure SQL Database", "Geo-Replication", "dbt", "Terraform"):
            self.assertEqual(self.levels[keyword], "omitted", keyword)

    def test_on_prem_sql_server_is_not_evidence_for_azure(self):
        levels = assign_truth_levels("Ten years of SQL Server on-prem administration.", KeywordBuckets(core_tech=["Azure SQL Database"]))
        self.assertEqual(levels["Azure SQL Database"], "omitted")

    def test_banned_terms_include_aliases(self):
        banned = banned_terms(self.levels)
        self.assertIn("azure sql database", banned)
        self.assertIn("azure sql", banned)
        self.assertNotIn("sql server", banned)


class ViolationTests(unittest.TestCase):
    def setUp(self):
        self.levels = assign_truth_levels(ONPREM_RESUME, _buckets())

    def test_clean_fields_have_no_violations(self):
        fields = ["Managed transactional replication and SQL Server failover tests."]
        self.assertEqual(find_violations(fields, self.levels), [])

    def test_omitted_keyword_is_reported(self):
        fields = ["Summary line.", "Migrated reporting to Azure SQL Database."]
        self.assertEqual(find_violations(fields, self.levels), ["Azure SQL Database"])

    def test_alias_of_omitted_keyword_is_reported(self):
        self.assertEqual(find_violations(["Ran Azure SQL workloads."], self.levels), ["Azure SQL Database"])

    def test_allowed_shorter_keyword_does_not_hide_longer_omitted_one(self):
        violations = find_violations(["Configured Geo-Replication for tier-1 databases."], self.levels)
        self.assertEqual(violations, ["Geo-Replication"])

    def test_omitted_keyword_nested_in_allowed_one_is_ignored(self):
        levels = {"SQL Server": "omitted", "SSRS": "hands-on"}
        self.assertEqual(find_violations(["Built reports in SQL Server Reporting Services."], levels), [])
        self.assertEqual(
            find_violations(["Built reports in SQL Server Reporting Services on SQL Server 2019."], levels),
            ["SQL Server"],
        )

    def test_matching_is_whole_word(self):
        levels = {"Git": "omitted"}
        self.assertEqual(find_violations(["Led a digital records project."], levels), [])
        self.assertEqual(find_violations(["Versioned scripts in Git."], levels), ["Git"])

    def test_version_suffix_does_not_hide_omitted_keyword(self):
        levels = {"Python": "omitted", "Terraform": "omitted", "PowerShell": "hands-on"}
        fields = ["Automated health checks in Python3 and Terraform2 modules."]
        self.assertEqual(find_violations(fields, levels), ["Python", "Terraform"])
        self.assertEqual(find_violations(["Scripted fixes in PowerShell7."], levels), [])
        self.assertEqual(find_violations(["Ported jobs to Pythonic wrappers."], levels), [])

    def test_case_insensitive(self):
        self.assertEqual(find_violations(["built DBT models"], self.levels), ["dbt"])


if __name__ == "__main__":
    unittest.main()
