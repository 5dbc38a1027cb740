from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ClassificationRecord:
    page_number: int
    category: str
    confidence: int
    filename: str
    summary: str
    stated_page_number: str | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "pageNumber": self.page_number,
            "category": self.category,
            "confidence": self.confidence,
            "filename": self.filename,
            "summary": self.summary,
            "statedPageNumber": self.stated_page_number,
        }


@dataclass(slots=True)
class WindowState:
    """State carried from one classification window to the next.

    ``used_filenames`` only ever grows and keeps insertion order so prompts
    built from it are reproducible (and therefore cacheable).
    """

    last_page_summary: ClassificationRecord | None = None
    _filenames: dict[str, None] = field(default_factory=dict)

    @property
    def used_filenames(self) -> list[str]:
        return list(self._filenames)

    def register(self, filename: str) -> None:
        self._filenames.setdefault(filename, None)

    def is_context_page(self, page_number: int) -> bool:
        return self.last_page_summary is not None and self.last_page_summary.page_number == page_number


@dataclass(slots=True)
class DocumentGroup:
    filename: str
    category: str
    summary: str
    page_numbers: list[int] = field(default_factory=list)

    def ordered_pages(self) -> list[int]:
        return sorted(set(self.page_numbers))


@dataclass(frozen=True, slots=True)
class CategoryAnomaly:
    filename: str
    page_number: int
    expected_category: str
    found_category: str


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    filename: str
    category: str
    summary: str

    def to_payload(self) -> dict[str, str]:
        return {"filename": self.filename, "category": self.category, "summary": self.summary}
