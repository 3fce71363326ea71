from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from resume_tailor.schemas.tailoring import CATEGORIES

from .provider import TaxonomyProvider, TermEntry


class LocalTaxonomy(TaxonomyProvider):
    def __init__(
        self,
        terms_path: str | Path | None = None,
        synonyms_path: str | Path | None = None,
    ) -> None:
        terms_file = Path(terms_path) if terms_path else Path(__file__).with_name("terms.json")
        synonyms_file = Path(synonyms_path) if synonyms_path else Path(__file__).with_name("synonyms.json")
        synonyms = self._load_synonyms(synonyms_file)
        self._entries = self._load_terms(terms_file, synonyms)
        self._by_form: dict[str, TermEntry] = {}
        for entry in self._entries:
            for form in entry.surface_forms():
                self._by_form[form] = entry

    @staticmethod
    def _load_synonyms(path: Path) -> dict[str, str]:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return {str(key).strip().lower(): str(value).strip() for key, value in raw.items()}

    @staticmethod
    def _load_terms(path: Path, synonyms: dict[str, str]) -> list[TermEntry]:
        with path.open("r", encoding="utf-8") as handle:
            raw: dict[str, Any] = json.load(handle)

        unknown = [name for name in raw if name not in CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown taxonomy buckets in '{path}': {', '.join(sorted(unknown))}")

        owner: dict[str, str] = {}
        for category in CATEGORIES:
            for item in raw.get(category) or []:
                key = str(item["term"]).strip().lower()
                if key in owner:
                    raise ValueError(
                        f"Taxonomy term '{item['term']}' is listed under both '{owner[key]}' and '{category}'"
                    )
                owner[key] = category

        aliases: dict[str, list[str]] = {}
        for alias, canonical in synonyms.items():
            target = canonical.lower()
            if target not in owner:
                raise ValueError(f"Synonym '{alias}' points at unknown term '{canonical}'")
            if alias in owner and alias != target:
                raise ValueError(f"Synonym '{alias}' shadows catalog term '{alias}'")
            aliases.setdefault(target, []).append(alias)

        entries: list[TermEntry] = []
        for category in CATEGORIES:
            for item in raw.get(category) or []:
                term = str(item["term"]).strip()
                entries.append(
                    TermEntry(
                        term=term,
                        category=category,
                        weight=float(item.get("weight", 1.0)),
                        tags=tuple(str(tag) for tag in item.get("tags") or []),
                        related=tuple(str(rel).strip().lower() for rel in item.get("related") or []),
                        aliases=tuple(sorted(aliases.get(term.lower(), []))),
                    )
                )
        return entries

    def entries(self) -> list[TermEntry]:
        return list(self._entries)

    def lookup(self, term: str) -> TermEntry | None:
        return self._by_form.get(term.strip().lower())

    def canonical(self, raw: str) -> str | None:
        entry = self.lookup(raw)
        return entry.term if entry else None

    def aliases_for(self, term: str) -> tuple[str, ...]:
        entry = self.lookup(term)
        return entry.aliases if entry else ()
