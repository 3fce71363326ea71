from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from resume_tailor.core.scoring_config import get_scoring_value
from resume_tailor.features.term_matching import find_catalog_terms
from resume_tailor.schemas.tailoring import CATEGORIES, KeywordBuckets
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

logger = logging.getLogger(__name__)

_ACRONYM_RE = re.compile(r"\b([A-Z][A-Z0-9./+#-]{1,7})\b")

_ACRONYM_NOISE = {
    "I", "II", "III", "IV", "AM", "PM", "US", "USA", "UK", "EU", "NYC",
    "LA", "SF", "CA", "TX", "NY", "MA", "WA", "OR", "FL", "IL", "PA",
    "OH", "GA", "NC", "VA", "CO", "AZ", "MD", "MN", "MO", "NJ", "IN",
    "TN", "MI", "WI", "CT", "DC", "FTE", "PTO", "YOE", "HR", "IT",
    "VP", "CEO", "CTO", "CFO", "COO", "CIO", "CMO", "SVP", "EVP",
    "JD", "CV", "NA", "TBD", "FYI", "FAQ", "WFH", "RTO", "OTE",
    "KPI", "KPIs", "OKR", "OKRs", "ROI", "YOY", "MOM", "QOQ",
    "EST", "PST", "CST", "MST", "GMT", "UTC",
    "HQ", "INC", "LLC", "LTD", "CORP", "PT", "FT",
    "AND", "FOR", "THE", "NOT", "BUT", "ALL", "ARE", "WAS",
    "HAS", "HAD", "CAN", "MAY", "NOW", "NEW", "OUR", "YOU",
    "WHO", "HOW", "WHY", "USE", "ONE", "TWO",
    "SQL", "DB", "EOE", "BS", "MS", "BA", "PHD", "DBA", "DBAS",
}

_DEFAULT_IMPORTANCE = {
    "core_tech": 3.0,
    "responsibilities": 2.0,
    "tools": 1.5,
    "adjacent_data_stores": 1.2,
    "compliance": 1.2,
    "logistics": 0.5,
}
_DEFAULT_BUCKET_MAX = {
    "core_tech": 9,
    "responsibilities": 7,
    "tools": 6,
    "adjacent_data_stores": 3,
    "compliance": 3,
    "logistics": 2,
}
_BOOSTED_TAGS = {
    "cloud-data-platform-engineer": {"cloud", "modern-data"},
    "data-engineer": {"cloud", "modern-data"},
    "specialist-dba": {"onprem"},
    "ehr-administrator": {"ehr"},
}


@dataclass
class RankedKeyword:
    term: str
    category: str
    score: float
    first_position: int
    count: int

    def sort_key(self) -> tuple[float, int, str]:
        return (-self.score, self.first_position, self.term.lower())


@dataclass
class BucketizeResult:
    buckets: KeywordBuckets
    synonym_map: dict[str, list[str]] = field(default_factory=dict)
    ranked: list[RankedKeyword] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


def _unknown_acronyms(text: str, claimed: list[tuple[int, int]], taxonomy: TaxonomyProvider) -> dict[str, tuple[int, int]]:
    """Upper-case acronyms outside catalog spans: acronym -> (count, first position)."""
    found: dict[str, tuple[int, int]] = {}
    for match in _ACRONYM_RE.finditer(text):
        acronym = match.group(1).rstrip("./-")
        if len(acronym) < 2 or acronym in _ACRONYM_NOISE:
            continue
        if re.fullmatch(r"[0-9]+", acronym) or len(set(acronym)) == 1:
            continue
        start = match.start(1)
        if any(begin <= start < end for begin, end in claimed):
            continue
        if taxonomy.lookup(acronym) is not None:
            continue
        count, first = found.get(acronym, (0, start))
        found[acronym] = (count + 1, min(first, start))
    return found


def bucketize_keywords(
    text: str,
    archetype: str = "generic-data-role",
    *,
    budget: int | None = None,
    taxonomy: TaxonomyProvider | None = None,
) -> BucketizeResult:
    """Extract catalog keywords from a job description into the six ranked buckets."""
    taxonomy = taxonomy or get_default_taxonomy_provider()
    text = text or ""
    if budget is None:
        budget = int(get_scoring_value("keywords.budget", 30))
    budget = max(0, budget)

    importance = {**_DEFAULT_IMPORTANCE, **(get_scoring_value("keywords.bucket_importance", {}) or {})}
    bucket_max = {**_DEFAULT_BUCKET_MAX, **(get_scoring_value("keywords.bucket_max", {}) or {})}
    boost = float(get_scoring_value("keywords.archetype_boost", 1.25))
    boosted_tags = _BOOSTED_TAGS.get(archetype, set())

    hits = find_catalog_terms(text, taxonomy)
    ranked: list[RankedKeyword] = []
    claimed: list[tuple[int, int]] = []
    for hit in hits.values():
        entry = taxonomy.lookup(hit.term)
        weight = entry.weight if entry else 1.0
        tag_boost = boost if entry and boosted_tags.intersection(entry.tags) else 1.0
        score = hit.count * float(importance.get(hit.category, 1.0)) * weight * tag_boost
        ranked.append(RankedKeyword(hit.term, hit.category, round(score, 6), hit.first_position, hit.count))
        claimed.extend(hit.spans)

    min_occurrences = int(get_scoring_value("keywords.acronym_min_occurrences", 2))
    acronym_weight = float(get_scoring_value("keywords.acronym_weight", 0.6))
    for acronym, (count, first) in _unknown_acronyms(text, claimed, taxonomy).items():
        if count < min_occurrences:
            continue
        score = count * float(importance.get("tools", 1.0)) * acronym_weight
        ranked.append(RankedKeyword(acronym, "tools", round(score, 6), first, count))

    per_bucket: dict[str, list[RankedKeyword]] = {category: [] for category in CATEGORIES}
    dropped: list[str] = []
    for category in CATEGORIES:
        items = sorted((item for item in ranked if item.category == category), key=RankedKeyword.sort_key)
        limit = max(0, int(bucket_max.get(category, len(items))))
        per_bucket[category] = items[:limit]
        dropped.extend(item.term for item in items[limit:])

    survivors = sorted(
        (item for items in per_bucket.values() for item in items), key=RankedKeyword.sort_key
    )
    if len(survivors) > budget:
        dropped.extend(item.term for item in survivors[budget:])
        keep = {item.term for item in survivors[:budget]}
        per_bucket = {
            category: [item for item in items if item.term in keep] for category, items in per_bucket.items()
        }
        survivors = survivors[:budget]

    buckets = KeywordBuckets(**{category: [item.term for item in per_bucket[category]] for category in CATEGORIES})
    synonym_map: dict[str, list[str]] = {}
    for item in survivors:
        hit = hits.get(item.term)
        if hit is None:
            continue
        seen_aliases = sorted(form for form in hit.forms if form != item.term.lower())
        if seen_aliases:
            synonym_map[item.term] = seen_aliases

    if dropped:
        logger.info("keyword_budget_trimmed kept=%s dropped=%s", len(survivors), len(dropped))
    return BucketizeResult(buckets=buckets, synonym_map=synonym_map, ranked=survivors, dropped=dropped)
