from __future__ import annotations

from typing import Iterable

from resume_tailor.features.term_matching import contains_term, find_spans, keyword_present
from resume_tailor.schemas.tailoring import KeywordBuckets, TruthLevel
from resume_tailor.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

FAMILIAR_PHRASES: tuple[str, ...] = (
    "Experience with",
    "Working knowledge of",
    "Exposure to",
    "Familiarity with",
    "Hands-on exposure to",
)


def assign_truth_levels(
    resume_text: str,
    buckets: KeywordBuckets,
    *,
    taxonomy: TaxonomyProvider | None = None,
) -> dict[str, TruthLevel]:
    """Grade each bucketed keyword against what the résumé can back up.

    hands-on: the keyword or one of its aliases appears in the résumé.
    familiar: only a related catalog term appears.
    omitted: no evidence; the keyword must not be claimed.
    """
    taxonomy = taxonomy or get_default_taxonomy_provider()
    levels: dict[str, TruthLevel] = {}
    for keyword in buckets.all_keywords():
        entry = taxonomy.lookup(keyword)
        aliases = entry.aliases if entry else ()
        if keyword_present(resume_text, keyword, aliases):
            levels[keyword] = "hands-on"
        elif entry and any(contains_term(resume_text, related) for related in entry.related):
            levels[keyword] = "familiar"
        else:
            levels[keyword] = "omitted"
    return levels


def surface_forms(keyword: str, taxonomy: TaxonomyProvider) -> tuple[str, ...]:
    entry = taxonomy.lookup(keyword)
    if entry is None:
        return (keyword.lower(),)
    return entry.surface_forms()


def banned_terms(levels: dict[str, TruthLevel], *, taxonomy: TaxonomyProvider | None = None) -> list[str]:
    taxonomy = taxonomy or get_default_taxonomy_provider()
    banned: list[str] = []
    for keyword, level in levels.items():
        if level != "omitted":
            continue
        for form in surface_forms(keyword, taxonomy):
            if form not in banned:
                banned.append(form)
    return banned


def _nested_in(span: tuple[int, int], covers: list[tuple[int, int]]) -> bool:
    start, end = span
    return any(
        begin <= start and end <= finish and (finish - begin) > (end - start) for begin, finish in covers
    )


def find_violations(
    fields: Iterable[str],
    levels: dict[str, TruthLevel],
    *,
    taxonomy: TaxonomyProvider | None = None,
) -> list[str]:
    """Omitted keywords that occur as whole terms in any generated field.

    A version suffix does not hide a term ("Python3", "Terraform2"). An
    occurrence nested inside a longer allowed keyword (e.g. "SQL Server"
    inside "SQL Server Reporting Services") does not count.
    """
    taxonomy = taxonomy or get_default_taxonomy_provider()
    omitted = [keyword for keyword, level in levels.items() if level == "omitted"]
    if not omitted:
        return []
    allowed_forms = {
        form for keyword, level in levels.items() if level != "omitted" for form in surface_forms(keyword, taxonomy)
    }

    texts = [text for text in fields if text]
    violations: list[str] = []
    for keyword in omitted:
        forms = surface_forms(keyword, taxonomy)
        for text in texts:
            spans = [span for form in forms for span in find_spans(text, form, digit_suffix=True)]
            if not spans:
                continue
            covers = [span for form in allowed_forms for span in find_spans(text, form)]
            if any(not _nested_in(span, covers) for span in spans):
                violations.append(keyword)
                break
    return violations
