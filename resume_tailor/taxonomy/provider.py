from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class TermEntry:
    term: str
    category: str
    weight: float = 1.0
    tags: tuple[str, ...] = ()
    related: tuple[str, ...] = ()
    aliases: tuple[str, ...] = field(default_factory=tuple)

    def surface_forms(self) -> tuple[str, ...]:
        """Canonical spelling followed by every alias, lower-cased."""
        return (self.term.lower(), *self.aliases)


class TaxonomyProvider(Protocol):
    def entries(self) -> list[TermEntry]:
        """Every catalog term in bucket order."""

    def lookup(self, term: str) -> TermEntry | None:
        """Resolve a canonical term or alias to its catalog entry."""

    def canonical(self, raw: str) -> str | None:
        """Return the canonical display spelling for a term or alias."""

    def aliases_for(self, term: str) -> tuple[str, ...]:
        """Lower-cased aliases of a canonical term (empty when unknown)."""
