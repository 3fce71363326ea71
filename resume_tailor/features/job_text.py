from __future__ import annotations

from resume_tailor.normalize.utils import is_bullet_like, normalize_line, strip_bullet_prefix

_REQUIREMENT_CUES = ("required", "requirement", "must have", "experience with", "experience in", "proficien", "knowledge of")
_TITLE_CUES = ("administrator", "engineer", "architect", "dba", "developer", "analyst", "manager")


def extract_requirements(text: str, limit: int = 25) -> list[str]:
    """Bulleted lines and requirement-style sentences, in posting order."""
    requirements: list[str] = []
    for raw in (text or "").splitlines():
        bullet = is_bullet_like(raw)
        line = normalize_line(strip_bullet_prefix(raw) if bullet else raw)
        if not line:
            continue
        if bullet or any(cue in line.lower() for cue in _REQUIREMENT_CUES):
            line = line[:300]
            if line not in requirements:
                requirements.append(line)
        if len(requirements) >= limit:
            break
    return requirements


def infer_title(text: str) -> str:
    """First short line that names a role; empty when nothing fits."""
    for raw in (text or "").splitlines()[:10]:
        line = raw.strip().strip("#*").strip()
        if not line or len(line.split()) > 8:
            continue
        if any(cue in line.lower() for cue in _TITLE_CUES):
            return line
    return ""
