from .formatting import detect_formatting_issues
from .job_text import extract_requirements, infer_title
from .keyword_buckets import BucketizeResult, RankedKeyword, bucketize_keywords
from .quality_gate import QualityGateConfig, evaluate_quality, quality_warnings
from .role_classifier import RoleClassification, classify_role
from .term_matching import contains_term, find_catalog_terms, keyword_present
from .truthfulness import assign_truth_levels, banned_terms, find_violations

__all__ = [
    "detect_formatting_issues",
    "extract_requirements",
    "infer_title",
    "BucketizeResult",
    "RankedKeyword",
    "bucketize_keywords",
    "QualityGateConfig",
    "evaluate_quality",
    "quality_warnings",
    "RoleClassification",
    "classify_role",
    "contains_term",
    "find_catalog_terms",
    "keyword_present",
    "assign_truth_levels",
    "banned_terms",
    "find_violations",
]
