"""
Remote store client for progress sync.

Commits batches of knowledge payloads to the cloud progress service. Every
write is a merge keyed by the payload id, so re-sending a batch is safe.
"""

from __future__ import annotations

from typing import Any, Protocol

import requests
from loguru import logger
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import get_settings

DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = [500, 502, 503, 504]


class RemoteSync(Protocol):
    def commit_batch(self, user_id: str, entries: list[dict[str, Any]], timeout: float) -> bool:
        """Commit one batch atomically; True on success."""
        ...


class HttpRemoteSync:
    """
    HTTP client for the progress batch-write endpoint.

    POST {base_url}/users/{user_id}/progress:batchWrite
        {"writes": [{"id": ..., "merge": true, "data": {...}}, ...]}
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        retries: int = DEFAULT_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        session: requests.Session | None = None,
    ) -> None:
        settings = get_settings()
        # Attempts per commit; the caller's timeout is split across them
        self.attempts = retries + 1 if session is None else 1
        self.base_url = (base_url or settings.remote_sync_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.remote_sync_api_key

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=retries,
                backoff_factor=backoff_factor,
                status_forcelist=RETRY_STATUS_CODES,
                allowed_methods=["POST"],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

        logger.debug("Initialized remote sync client: url={}, retries={}", self.base_url, retries)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def attempt_timeout(self, timeout: float) -> float:
        return timeout / self.attempts

    def commit_batch(self, user_id: str, entries: list[dict[str, Any]], timeout: float) -> bool:
        """
        Send one batch of merge writes.

        ``timeout`` covers the whole commit: each HTTP attempt (first try plus
        adapter retries) gets an equal share. Backoff sleeps between attempts
        are not counted.

        Raises:
            requests.RequestException: On transport failure or non-2xx status
        """
        if not entries:
            return True

        payload = {
            "writes": [{"id": entry.get("id"), "merge": True, "data": entry} for entry in entries],
        }
        response = self.session.post(
            f"{self.base_url}/users/{user_id}/progress:batchWrite",
            json=payload,
            headers=self._headers(),
            timeout=self.attempt_timeout(timeout),
        )
        response.raise_for_status()
        logger.debug("Committed {} writes for {} ({})", len(entries), user_id, response.status_code)
        return True
