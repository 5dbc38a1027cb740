from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Page:
    page_number: int
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        """Page text as it is shown to the model, prefixed with its page number."""
        return f"Page {self.page_number}: \n\n" + "\n".join(self.lines)
