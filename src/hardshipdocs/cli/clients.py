from __future__ import annotations

from hardshipdocs.core.config import AppSettings
from hardshipdocs.infrastructure.http.call_cache import CallCache
from hardshipdocs.infrastructure.http.memoized_client import MemoizedHttpClient
from hardshipdocs.infrastructure.http.transport import UrllibTransport
from hardshipdocs.infrastructure.llm.completion_client import AzureChatCompletionClient
from hardshipdocs.infrastructure.ocr.job_poller import JobPoller, PollPolicy
from hardshipdocs.infrastructure.ocr.layout_client import LayoutAnalysisClient


def open_cache(settings: AppSettings) -> CallCache:
    return CallCache.init(settings.cache_path)


def make_transport(settings: AppSettings) -> UrllibTransport:
    return UrllibTransport(timeout_seconds=settings.http_timeout_seconds)


def make_completion_client(
    settings: AppSettings,
    cache: CallCache,
    transport: UrllibTransport,
) -> AzureChatCompletionClient:
    endpoint, api_key = settings.require_completion()
    return AzureChatCompletionClient(
        MemoizedHttpClient(cache, transport),
        endpoint,
        api_key,
        use_cache=settings.use_cache,
    )


def make_layout_client(
    settings: AppSettings,
    cache: CallCache,
    transport: UrllibTransport,
) -> LayoutAnalysisClient:
    endpoint, api_key = settings.require_layout()
    poller = JobPoller(
        PollPolicy(
            interval_seconds=settings.poll_interval_seconds,
            timeout_seconds=settings.poll_timeout_seconds,
            backoff_factor=settings.poll_backoff,
        )
    )
    return LayoutAnalysisClient(transport, cache, endpoint, api_key, poller, use_cache=settings.use_cache)
