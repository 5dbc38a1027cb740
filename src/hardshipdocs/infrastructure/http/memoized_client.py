from __future__ import annotations

import json
import logging

from hardshipdocs.infrastructure.http.call_cache import CallCache
from hardshipdocs.infrastructure.http.transport import HttpTransport, json_request

logger = logging.getLogger(__name__)


class MemoizedHttpClient:
    def __init__(self, cache: CallCache, transport: HttpTransport) -> None:
        self.cache = cache
        self.transport = transport

    @staticmethod
    def cache_key(endpoint: str, payload: object) -> str:
        # Serialization is compact and order-preserving; no key normalization.
        return f"{endpoint}:{json.dumps(payload, separators=(',', ':'), ensure_ascii=False)}"

    def post_json(
        self,
        endpoint: str,
        payload: object,
        headers: dict[str, str],
        *,
        use_cache: bool = True,
    ) -> object:
        key = self.cache_key(endpoint, payload)
        if use_cache and key in self.cache:
            logger.debug("Cache hit for %s", endpoint)
            return self.cache.get(key)

        logger.debug("Cache miss for %s", endpoint)
        try:
            response = self.transport.send(json_request("POST", endpoint, payload, headers))
            data = response.json()
        except Exception as exc:
            logger.error("Error in memoized POST to %s: %s", endpoint, exc)
            raise

        self.cache.put(key, data)
        return data
