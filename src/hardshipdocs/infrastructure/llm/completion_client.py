from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from hardshipdocs.core.errors import SchemaViolationError
from hardshipdocs.infrastructure.http.memoized_client import MemoizedHttpClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 15000


class CompletionModel(Protocol):
    def complete(self, prompt: str, *, max_tokens: int = DEFAULT_MAX_TOKENS) -> str: ...


class AzureChatCompletionClient:
    """Single-message chat completion against an Azure OpenAI deployment.

    Sampling is pinned (temperature 0, top_p 1) so identical prompts map to
    identical cache entries and reproducible classifications.
    """

    def __init__(
        self,
        http: MemoizedHttpClient,
        endpoint: str,
        api_key: str,
        *,
        use_cache: bool = True,
    ) -> None:
        self.http = http
        self.endpoint = endpoint
        self.api_key = api_key
        self.use_cache = use_cache

    def build_payload(self, prompt: str, max_tokens: int) -> dict[str, object]:
        return {
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": 0,
            "top_p": 1,
        }

    def complete(self, prompt: str, *, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
        headers = {"Content-Type": "application/json", "api-key": self.api_key}
        data = self.http.post_json(
            self.endpoint,
            self.build_payload(prompt, max_tokens),
            headers,
            use_cache=self.use_cache,
        )
        return extract_message_content(data)


def extract_message_content(data: object) -> str:
    if not isinstance(data, Mapping):
        raise SchemaViolationError("Completion response is not a JSON object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise SchemaViolationError("Completion response has no choices")
    first = choices[0]
    message = first.get("message") if isinstance(first, Mapping) else None
    content = message.get("content") if isinstance(message, Mapping) else None
    if not isinstance(content, str):
        raise SchemaViolationError("Completion response has no message content")
    logger.debug("Completion content: %s", content)
    return content
