from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from hardshipdocs.core.errors import JobFailedError, JobTimeoutError, RemoteCallError, SchemaViolationError
from hardshipdocs.core.files import compute_file_digest
from hardshipdocs.domain.models.page import Page
from hardshipdocs.infrastructure.http.call_cache import CallCache
from hardshipdocs.infrastructure.http.transport import HttpRequest, HttpTransport
from hardshipdocs.infrastructure.ocr.job_poller import JobPoller, JobState

logger = logging.getLogger(__name__)


class LayoutAnalysisClient:
    """Azure Document Intelligence layout analysis with a persistent result cache.

    Results are cached by analyze URL plus the SHA-256 of the document bytes,
    so the same PDF is only ever analyzed once regardless of its path.
    """

    MODEL_ID = "prebuilt-document"
    API_VERSION = "2023-07-31"

    def __init__(
        self,
        transport: HttpTransport,
        cache: CallCache,
        endpoint: str,
        api_key: str,
        poller: JobPoller | None = None,
        *,
        use_cache: bool = True,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.endpoint = endpoint if endpoint.endswith("/") else f"{endpoint}/"
        self.api_key = api_key
        self.poller = poller or JobPoller()
        self.use_cache = use_cache

    @property
    def analyze_url(self) -> str:
        return (
            f"{self.endpoint}formrecognizer/documentModels/{self.MODEL_ID}:analyze"
            f"?api-version={self.API_VERSION}"
        )

    def cache_key_for(self, pdf_path: Path) -> str:
        return f"{self.analyze_url}:sha256:{compute_file_digest(pdf_path)}"

    def analyze(self, pdf_path: Path) -> Mapping[str, object]:
        key = self.cache_key_for(pdf_path)
        if self.use_cache and key in self.cache:
            logger.info("Using cached analysis result for %s", pdf_path.name)
            cached = self.cache.get(key)
            if isinstance(cached, Mapping):
                return cached

        result = self.submit_and_await(pdf_path)
        self.cache.put(key, dict(result))
        return result

    def submit_and_await(self, pdf_path: Path) -> Mapping[str, object]:
        response = self.transport.send(
            HttpRequest(
                method="POST",
                url=self.analyze_url,
                headers={
                    "Content-Type": "application/pdf",
                    "Ocp-Apim-Subscription-Key": self.api_key,
                },
                body=pdf_path.read_bytes(),
            )
        )

        if response.status == 202:
            location = response.header("operation-location")
            if not location:
                raise RemoteCallError(
                    "Analysis accepted without an operation-location header",
                    status=response.status,
                )
            logger.info("Analysis of %s accepted. Polling for results...", pdf_path.name)
            outcome = self.poller.await_job(location, self._fetch_status)
            if outcome.state is JobState.ABORTED:
                raise JobTimeoutError(f"Layout analysis of {pdf_path.name} did not finish in time")
            if not outcome.succeeded or outcome.result is None:
                raise JobFailedError(
                    f"Layout analysis of {pdf_path.name} ended with status {outcome.last_status!r}"
                )
            return outcome.result

        if response.status == 200:
            payload = response.json()
            if isinstance(payload, Mapping):
                return payload

        raise RemoteCallError(
            f"Unexpected response submitting {pdf_path.name} for analysis",
            status=response.status,
            body=response.body[:500].decode("utf-8", errors="replace"),
        )

    def _fetch_status(self, location: str) -> Mapping[str, object]:
        response = self.transport.send(
            HttpRequest(
                method="GET",
                url=location,
                headers={"Ocp-Apim-Subscription-Key": self.api_key},
            )
        )
        payload = response.json()
        if not isinstance(payload, Mapping):
            raise RemoteCallError("Poll response is not a JSON object", status=response.status)
        return payload


def pages_from_result(result: Mapping[str, object]) -> list[Page]:
    analyze_result = result.get("analyzeResult")
    if not isinstance(analyze_result, Mapping):
        raise SchemaViolationError("Layout result is missing 'analyzeResult'")
    raw_pages = analyze_result.get("pages")
    if not isinstance(raw_pages, list):
        raise SchemaViolationError("Layout result is missing 'analyzeResult.pages'")

    pages: list[Page] = []
    for index, raw in enumerate(raw_pages, start=1):
        if not isinstance(raw, Mapping):
            raise SchemaViolationError(f"Layout page {index} is not an object")
        try:
            number = int(raw.get("pageNumber", index))
        except (TypeError, ValueError) as exc:
            raise SchemaViolationError(f"Layout page {index} has an invalid pageNumber") from exc
        lines = raw.get("lines") or []
        contents = tuple(
            str(line.get("content", "")) for line in lines if isinstance(line, Mapping)
        )
        pages.append(Page(page_number=number, lines=contents))
    return pages
