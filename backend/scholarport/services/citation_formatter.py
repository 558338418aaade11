"""
Citation Style Formatter
Renders a citation as a single bibliographic string.

Styles:
- APA (default): Authors (Year). Title. Journal, Volume(Issue), Pages. https://doi.org/DOI
- MLA: Authors. "Title." Journal, Year.
- Chicago: Authors. "Title." Journal (Year).

Unrecognized style names fall back to APA.
"""
from typing import Optional, Any
from dataclasses import dataclass
from enum import Enum


class CitationStyle(Enum):
    """Supported citation styles."""
    APA = "apa"
    MLA = "mla"
    CHICAGO = "chicago"

    @classmethod
    def resolve(cls, style: Optional[str]) -> "CitationStyle":
        """Map a style name (any case) to a style, defaulting to APA."""
        if style:
            try:
                return cls(style.strip().lower())
            except ValueError:
                pass
        return cls.APA


@dataclass
class CitationEntry:
    """Fields a citation style needs."""
    authors: str
    title: str
    year: int
    journal: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None
    doi: Optional[str] = None

    @classmethod
    def from_citation(cls, citation: Any) -> "CitationEntry":
        """Build an entry from a Citation model (or any object with the same attributes)."""
        return cls(
            authors=citation.authors,
            title=citation.title,
            year=citation.year,
            journal=citation.journal,
            volume=citation.volume,
            issue=citation.issue,
            pages=citation.pages,
            doi=citation.doi
        )


# Placeholder used by MLA and Chicago when the source journal is unknown
MISSING_JOURNAL = "Journal"


class CitationFormatter:
    """Format citation entries in APA, MLA or Chicago style."""

    def __init__(self):
        self._formatters = {
            CitationStyle.APA: self._format_apa,
            CitationStyle.MLA: self._format_mla,
            CitationStyle.CHICAGO: self._format_chicago,
        }

    def format(self, entry: CitationEntry, style: Optional[str] = None) -> str:
        """Format entry in the requested style."""
        resolved = CitationStyle.resolve(style)
        formatter = self._formatters.get(resolved, self._format_apa)
        return formatter(entry)

    def _format_apa(self, entry: CitationEntry) -> str:
        """
        Format APA reference:
        Authors (Year). Title. Journal, Volume(Issue), Pages. https://doi.org/DOI
        """
        parts = [f"{entry.authors} ({entry.year}).", f"{entry.title}."]

        if entry.journal:
            source = entry.journal
            if entry.volume:
                source += f", {entry.volume}"
            if entry.issue:
                source += f"({entry.issue})"
            if entry.pages:
                source += f", {entry.pages}"
            parts.append(f"{source}.")

        if entry.doi:
            parts.append(f"https://doi.org/{entry.doi}")

        return " ".join(parts)

    def _format_mla(self, entry: CitationEntry) -> str:
        journal = entry.journal or MISSING_JOURNAL
        return f'{entry.authors}. "{entry.title}." {journal}, {entry.year}.'

    def _format_chicago(self, entry: CitationEntry) -> str:
        journal = entry.journal or MISSING_JOURNAL
        return f'{entry.authors}. "{entry.title}." {journal} ({entry.year}).'


def format_citation(citation: Any, style: Optional[str] = None) -> str:
    """Format a Citation model in the requested style."""
    return citation_formatter.format(CitationEntry.from_citation(citation), style)


# --- Singleton instance ---
citation_formatter = CitationFormatter()
