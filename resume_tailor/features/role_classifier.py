from __future__ import annotations

from pydantic import BaseModel, Field

from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.features.term_matching import find_spans
from resume_tailor.schemas.tailoring import RoleArchetype

_ARCHETYPE_SIGNALS: dict[str, dict[str, float]] = {
    "ehr-administrator": {
        "epic": 2.0,
        "cerner": 2.0,
        "ehr": 2.0,
        "emr": 2.0,
        "clarity": 1.0,
        "clinical": 1.0,
        "healthcare": 1.0,
        "hipaa": 1.0,
        "hospital": 1.0,
    },
    "specialist-dba": {
        "dba": 2.0,
        "database administrator": 3.0,
        "database administration": 2.0,
        "sql server": 1.0,
        "alwayson": 1.0,
        "availability groups": 1.0,
        "log shipping": 1.0,
        "failover clustering": 1.0,
        "backup and recovery": 1.0,
        "performance tuning": 1.0,
        "t-sql": 1.0,
        "on-prem": 1.0,
        "on-premises": 1.0,
    },
    "cloud-data-platform-engineer": {
        "cloud": 1.0,
        "azure": 1.0,
        "aws": 1.0,
        "gcp": 1.0,
        "azure sql database": 2.0,
        "rds": 1.0,
        "snowflake": 1.0,
        "databricks": 1.0,
        "terraform": 1.0,
        "platform engineer": 3.0,
        "cloud migration": 2.0,
    },
    "data-engineer": {
        "data engineer": 3.0,
        "data engineering": 2.0,
        "airflow": 1.0,
        "dbt": 1.0,
        "etl": 1.0,
        "elt": 1.0,
        "data pipelines": 1.0,
        "data pipeline": 1.0,
        "spark": 1.0,
        "data warehouse": 1.0,
        "python": 0.5,
    },
}

# Tie-break order, most specific first.
_SPECIFICITY: tuple[RoleArchetype, ...] = (
    "ehr-administrator",
    "specialist-dba",
    "cloud-data-platform-engineer",
    "data-engineer",
    "generic-data-role",
)

_WEIGHTING_HINTS: dict[str, list[str]] = {
    "ehr-administrator": [
        "Lead with EHR platform administration (Epic, Cerner) and clinical system support.",
        "Surface HIPAA and audit evidence early; healthcare compliance is a screening filter for this role.",
    ],
    "specialist-dba": [
        "Lead with SQL Server administration depth: HA/DR, backup and recovery, performance tuning.",
        "Quantify uptime, recovery objectives and tuning wins in experience bullets.",
    ],
    "cloud-data-platform-engineer": [
        "Lead with cloud platform terms (Azure SQL Database, AWS RDS, Snowflake) over on-prem SQL Server.",
        "Frame on-prem experience as migration or hybrid-platform groundwork where the résumé supports it.",
    ],
    "data-engineer": [
        "Lead with pipeline orchestration and transformation tooling (Airflow, dbt, ETL/ELT).",
        "Frame database administration work in terms of data delivery and reliability.",
    ],
    "generic-data-role": [
        "Keep a balanced emphasis across database platforms, tooling and responsibilities.",
    ],
}


class RoleClassification(BaseModel):
    archetype: RoleArchetype = "generic-data-role"
    scores: dict[str, float] = Field(default_factory=dict)
    evidence_terms: list[str] = Field(default_factory=list)
    cloud_oriented: bool = False
    weighting_hints: list[str] = Field(default_factory=list)


def _archetype_scores(text: str, title: str) -> tuple[dict[str, float], dict[str, list[str]]]:
    title_weight = float(get_scoring_value("roles.title_weight", 3))
    scores: dict[str, float] = {}
    evidence: dict[str, list[str]] = {}
    for archetype, signals in _ARCHETYPE_SIGNALS.items():
        score = 0.0
        seen: list[str] = []
        for signal, weight in signals.items():
            hits = len(find_spans(text, signal)) + title_weight * len(find_spans(title, signal))
            if hits:
                score += hits * weight
                seen.append(signal)
        scores[archetype] = round(score, 4)
        evidence[archetype] = seen
    return scores, evidence


def classify_role(text: str, title: str | None = None) -> RoleClassification:
    """Pick the closest archetype for a job description. Never raises."""
    scores, evidence = _archetype_scores(text or "", title or "")
    best = max(scores.values(), default=0.0)
    if best <= 0:
        archetype: RoleArchetype = "generic-data-role"
    else:
        archetype = next(name for name in _SPECIFICITY if scores.get(name, 0.0) == best)

    cloud_archetypes = get_scoring_value(
        "roles.cloud_archetypes", ["cloud-data-platform-engineer", "data-engineer"]
    )
    return RoleClassification(
        archetype=archetype,
        scores=scores,
        evidence_terms=evidence.get(archetype, [])[:8],
        cloud_oriented=archetype in set(cloud_archetypes or []),
        weighting_hints=list(_WEIGHTING_HINTS[archetype]),
    )
