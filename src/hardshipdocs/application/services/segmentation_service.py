from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from hardshipdocs.core.errors import HardshipError
from hardshipdocs.domain.models.classification import ClassificationRecord, WindowState
from hardshipdocs.domain.models.page import Page
from hardshipdocs.infrastructure.llm.completion_client import DEFAULT_MAX_TOKENS, CompletionModel
from hardshipdocs.infrastructure.llm.prompts import build_page_classification_prompt, join_pages
from hardshipdocs.infrastructure.llm.responses import parse_page_classifications

logger = logging.getLogger(__name__)

WINDOW_SIZE = 10
WINDOW_STRIDE = 9


@dataclass(slots=True)
class SegmentationResult:
    records: list[ClassificationRecord]
    windows_total: int
    windows_completed: int
    used_filenames: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def complete(self) -> bool:
        return self.error is None and self.windows_completed == self.windows_total


def plan_windows(
    pages: Sequence[Page],
    size: int = WINDOW_SIZE,
    stride: int = WINDOW_STRIDE,
) -> list[list[Page]]:
    """Split pages into overlapping windows.

    Each window after the first starts with the last page of the previous
    window. A trailing window holding nothing but that overlap page is not
    produced, since every page in it has already been classified.
    """
    if size < 1 or stride < 1 or stride > size:
        raise ValueError(f"Invalid window geometry: size={size} stride={stride}")

    windows: list[list[Page]] = []
    overlap = size - stride
    for start in range(0, len(pages), stride):
        window = list(pages[start : start + size])
        if start > 0 and len(window) <= overlap:
            break
        windows.append(window)
    return windows


class SegmentationService:
    """Classifies pages window by window while carrying continuity state forward.

    Windows are processed strictly in order: the prompt for each window embeds
    the last classification of the previous window and every filename chosen
    so far.
    """

    def __init__(
        self,
        completion: CompletionModel,
        *,
        window_size: int = WINDOW_SIZE,
        window_stride: int = WINDOW_STRIDE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.completion = completion
        self.window_size = window_size
        self.window_stride = window_stride
        self.max_tokens = max_tokens

    def segment(
        self,
        pages: Sequence[Page],
        progress_callback: Callable[[dict[str, object]], None] | None = None,
    ) -> SegmentationResult:
        windows = plan_windows(pages, self.window_size, self.window_stride)
        state = WindowState()
        records: list[ClassificationRecord] = []
        completed = 0
        error: str | None = None

        for index, window in enumerate(windows, start=1):
            self._emit_progress(
                progress_callback,
                {
                    "event": "window_start",
                    "index": index,
                    "total": len(windows),
                    "first_page": window[0].page_number,
                    "last_page": window[-1].page_number,
                },
            )
            try:
                emitted = self.classify_window(window, state)
            except HardshipError as exc:
                error = f"window {index} (pages {window[0].page_number}-{window[-1].page_number}): {exc}"
                logger.error("Error analyzing pages, stopping segmentation at %s", error)
                break

            records.extend(emitted)
            completed += 1
            self._emit_progress(
                progress_callback,
                {"event": "window_done", "index": index, "total": len(windows), "records": len(emitted)},
            )

        return SegmentationResult(
            records=records,
            windows_total=len(windows),
            windows_completed=completed,
            used_filenames=state.used_filenames,
            error=error,
        )

    def classify_window(self, window: Sequence[Page], state: WindowState) -> list[ClassificationRecord]:
        """Classify one window and advance ``state``; returns only records new to this window."""
        prompt = build_page_classification_prompt(
            state.last_page_summary,
            state.used_filenames,
            join_pages([page.text for page in window]),
        )
        response = self.completion.complete(prompt, max_tokens=self.max_tokens)
        analysis = parse_page_classifications(response)
        logger.info(
            "Window pages %d-%d: %d classification(s)",
            window[0].page_number,
            window[-1].page_number,
            len(analysis),
        )

        emitted: list[ClassificationRecord] = []
        for record in analysis:
            if state.is_context_page(record.page_number):
                logger.debug("Dropping re-emitted context page %d", record.page_number)
                continue
            emitted.append(record)

        for record in analysis:
            state.register(record.filename)
        if analysis:
            state.last_page_summary = analysis[-1]
        return emitted

    @staticmethod
    def _emit_progress(
        callback: Callable[[dict[str, object]], None] | None,
        payload: dict[str, object],
    ) -> None:
        if callback is None:
            return
        callback(payload)
