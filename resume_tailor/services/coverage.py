from __future__ import annotations

from resume_tailor.features.term_matching import keyword_present
from resume_tailor.schemas.tailoring import CoverageReport, KeywordBuckets, TailoredContent, TruthLevel
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider


def coverage_for_text(
    text: str,
    buckets: KeywordBuckets,
    truthfulness: dict[str, TruthLevel] | None = None,
    *,
    taxonomy: TaxonomyProvider | None = None,
) -> CoverageReport:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    matched: list[str] = []
    missing: list[str] = []
    for keyword in buckets.all_keywords():
        entry = taxonomy.lookup(keyword)
        if keyword_present(text, keyword, entry.aliases if entry else ()):
            matched.append(keyword)
        else:
            missing.append(keyword)
    levels = {keyword: level for keyword, level in (truthfulness or {}).items() if buckets.category_of(keyword)}
    return CoverageReport(matched_keywords=matched, missing_keywords=missing, truthfulness_level=levels)


def build_coverage_report(
    content: TailoredContent,
    buckets: KeywordBuckets,
    truthfulness: dict[str, TruthLevel] | None = None,
    *,
    taxonomy: TaxonomyProvider | None = None,
) -> CoverageReport:
    """Matched/missing keywords for a tailored résumé, in bucket order."""
    levels = truthfulness if truthfulness is not None else content.truthfulness
    return coverage_for_text(content.resume_text(), buckets, levels, taxonomy=taxonomy)
