"""Shared sample documents and a deterministic oracle for the test suite."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Mapping

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests offline and unthrottled.
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("SESSION_STORE", "memory")

from resume_tailor.ai.types import OracleError, ensure_structured  # noqa: E402

ONPREM_RESUME = """Jordan Avery
Senior Database Administrator
jordan.avery@example.com | (555) 010-2233 | Columbus, OH

PROFESSIONAL SUMMARY
Database administrator with 9 years supporting on-premises SQL Server estates for regional healthcare and retail clients.

EXPERIENCE
Senior Database Administrator, Northwind Health, 2018 - Present
- Administered 40+ SQL Server on-prem instances across production and reporting tiers.
- Led disaster recovery planning and quarterly failover tests for AlwaysOn availability groups.
- Reduced average query latency 45% through performance tuning of T-SQL stored procedures.
- Automated index maintenance and backups with PowerShell and SQL Agent jobs.
- Owned backup and restore runbooks and the on-call rotation for tier-1 databases.

Database Administrator, Contoso Retail, 2014 - 2018
- Managed log shipping and transactional replication for 12 store databases.
- Built SSIS packages to load nightly sales data into the reporting tier.
- Applied cumulative updates during maintenance windows with zero unplanned downtime.

SKILLS
SQL Server, T-SQL, PowerShell, SSIS, SSRS, Windows Server, Performance Tuning

CERTIFICATIONS
MCSA: SQL 2016 Database Administration

EDUCATION
B.S. Information Systems, Ohio State University
"""

CLOUD_JOB_DESCRIPTION = """Cloud Data Platform Engineer

About the role
Our analytics group is moving every operational reporting workload onto Azure SQL Database and a modern ELT stack. We are hiring a Cloud Data Platform Engineer to own the Azure SQL Database fleet end to end and to build the pipelines that feed our warehouse. You will partner with analysts, product engineers and the security team, and you will be the person who knows how every Azure SQL Database in the estate is configured, monitored and recovered.

What you will do
- Design, provision and operate Azure SQL Database servers and elastic pools for twelve product teams.
- Configure Geo-Replication and failover groups so that every tier-1 Azure SQL Database meets its recovery objectives.
- Own High Availability & Disaster Recovery for the platform, including documented recovery drills each quarter.
- Build and maintain data pipelines with dbt and Airflow that move data from Azure SQL Database into the analytics layer.
- Write dbt models, tests and documentation; review pull requests from analysts who contribute dbt changes.
- Schedule, monitor and tune Airflow DAGs, and keep Airflow upgrades moving without breaking downstream jobs.
- Drive performance tuning for slow queries, using query store data and execution plans to find regressions.
- Lead database migration projects that retire legacy reporting servers in favour of managed services.
- Manage infrastructure with Terraform so every environment is reproducible and reviewed.
- Write Python utilities for data quality checks, pipeline alerting and operational automation.
- Participate in data modeling sessions with analysts and agree on naming, grain and ownership for shared tables.

What you bring
- Five or more years operating relational databases in production, with at least two on Azure SQL Database.
- Hands-on experience with dbt in a team setting, including testing and documentation practices.
- Hands-on experience orchestrating pipelines with Airflow, including sensors, retries and backfills.
- Strong performance tuning skills and comfort reading execution plans.
- Working knowledge of Terraform and Python.
- Experience planning High Availability & Disaster Recovery for business-critical data.
- Familiarity with Snowflake or a similar cloud warehouse is a plus.
- Clear written communication; you will write runbooks other engineers rely on at 3 a.m.

How we work
The platform team is small and senior. We plan in two-week cycles, keep a written decision log, and favour boring, well-understood technology. Every production change goes through code review and an automated test suite. Incidents are handled blamelessly, and every incident ends with a short written review that lists concrete follow-ups and an owner for each one. You will have real ownership of the Azure SQL Database platform and the pipeline stack, and you will be expected to say no to work that would compromise reliability.

Your first ninety days
In your first month you will learn how our Azure SQL Database estate is laid out, shadow the current on-call engineer, and fix at least one long-standing alert that pages people for no reason. In your second month you will take over one of the dbt projects and its Airflow schedule, and you will propose improvements to how we test models before they reach production. By the end of your third month you will have run a recovery drill for a tier-1 database on your own and presented the findings to the wider engineering group.

Compensation and growth
The salary band for this role is published internally and reviewed every year. Engineers on the platform team get a yearly learning budget, dedicated time each sprint for maintenance and tooling work, and a clear path toward staff-level responsibilities. We promote based on the scope of problems you own and the people you help, not on how many hours you appear to be online. We will also support you in earning a cloud certification if that is useful for your goals, and you will be encouraged to share what you learn in our monthly engineering forum.

Tools you will touch
Azure SQL Database, dbt, Airflow, Terraform, Python, Snowflake, Git and our internal deployment tooling. You do not need to know all of them on day one; we care more about how you learn and how you reason about failure than about a checklist.
"""

SHORT_JOB_DESCRIPTION = """Database Administrator
We need a database administrator to look after SQL Server instances, handle performance tuning and
automate routine work with PowerShell. You will also maintain backups and support the on-call rotation.
"""

EHR_JOB_DESCRIPTION = """EHR Database Administrator

Support the Epic Clarity reporting database for a regional hospital network. Maintain HIPAA compliance
for all reporting extracts, perform performance tuning on Clarity ETL jobs, and coordinate EHR Administration
changes with clinical systems teams. Experience with SQL Server, Auditing and Encryption of PHI is required.
Epic Clarity certification strongly preferred. Participate in the on-call rotation and disaster recovery drills.
"""


def _hands_on(instructions: Mapping[str, Any]) -> list[str]:
    return list(instructions.get("keywords", {}).get("hands_on", []))


def _familiar(instructions: Mapping[str, Any]) -> list[str]:
    return list(instructions.get("keywords", {}).get("familiar", []))


def truthful_draft(instructions: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
    """A draft that only uses what the instructions allow."""
    hands_on = _hands_on(instructions)
    familiar = _familiar(instructions)
    summary = "Database administrator with hands-on experience in " + ", ".join(hands_on or ["database operations"]) + "."
    if familiar:
        summary += " Working knowledge of " + ", ".join(familiar) + "."
    return {
        "contact": {"name": "Jordan Avery", "title": "Senior Database Administrator", "email": "jordan.avery@example.com"},
        "summary": summary,
        "experience": [
            {
                "title": "Senior Database Administrator",
                "company": "Northwind Health",
                "duration": "2018 - Present",
                "achievements": [
                    "• Led disaster recovery planning and quarterly failover tests.",
                    "Reduced average query latency 45% through tuning of stored procedures.",
                ],
            }
        ],
        "skills": hands_on + hands_on[:1],
        "certifications": ["MCSA: SQL 2016 Database Administration"],
        "education": ["B.S. Information Systems, Ohio State University"],
        "improvements": ["Moved the strongest matching experience into the summary."],
    }


def gap_question(instructions: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
    keyword = context.get("keyword", "")
    return {
        "question": f"How would you get productive with {keyword} in your first month?",
        "rationale": f"The posting lists {keyword} and the résumé does not show it yet.",
    }


def default_handler(instructions: Mapping[str, Any], context: Mapping[str, Any], purpose: str) -> dict[str, Any]:
    if purpose == "gap_question":
        return gap_question(instructions, context)
    return truthful_draft(instructions, context)


class StubOracle:
    """Records every call; answers from a handler, a queue of responses, or raises."""

    def __init__(
        self,
        handler: Callable[[Mapping[str, Any], Mapping[str, Any], str], dict[str, Any]] | None = None,
        *,
        responses: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.handler = handler or default_handler
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def generate(
        self,
        instructions: Mapping[str, Any],
        context: Mapping[str, Any],
        *,
        purpose: str = "tailor",
    ) -> dict[str, Any]:
        ensure_structured("instructions", instructions)
        ensure_structured("context", context)
        self.calls.append({"instructions": instructions, "context": context, "purpose": purpose})
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return self.handler(instructions, context, purpose)


def failing_oracle() -> StubOracle:
    return StubOracle(error=OracleError("upstream timeout"))
