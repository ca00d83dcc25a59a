from __future__ import annotations

import logging
import random
import time
from typing import Any, Mapping

import requests

logger = logging.getLogger(__name__)

PEXELS_API_BASE_URL = "https://api.pexels.com"
DEFAULT_TIMEOUT_SECONDS = 10.0


class PexelsClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _request_json(
    session: requests.Session,
    url: str,
    *,
    api_key: str,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = 2,
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
        "authorization": api_key,
    }

    last_response: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                delay = 0.5 * (2**attempt)
                jitter = random.uniform(0.0, delay * 0.25)
                time.sleep(delay + jitter)
                continue
            raise PexelsClientError(f"Pexels request failed: {exc}") from exc

        last_response = resp
        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and attempt < max_attempts - 1:
            delay = 0.5 * (2**attempt)
            jitter = random.uniform(0.0, delay * 0.25)
            time.sleep(delay + jitter)
            continue

        raise PexelsClientError(
            f"Pexels request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    if last_response is None:
        raise PexelsClientError("Pexels request failed (no response).")
    resp = last_response

    try:
        payload = resp.json()
    except ValueError as exc:
        raise PexelsClientError(
            "Pexels returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise PexelsClientError("Pexels returned unexpected JSON shape (not an object).")
    return payload


class PexelsClient:
    """Read-only client for the Pexels video API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        session: requests.Session | None = None,
        base_url: str = PEXELS_API_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = (api_key or "").strip() or None
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    def popular_videos(self, *, per_page: int = 15, page: int = 1) -> list[Any]:
        """
        Fetch one page of `/videos/popular`.

        Returns the raw `videos` array; entries are not validated here.
        """
        if self.api_key is None:
            raise PexelsClientError("PEXELS_API_KEY is not set.")

        payload = _request_json(
            self.session,
            f"{self.base_url}/videos/popular",
            api_key=self.api_key,
            params={"per_page": per_page, "page": page},
            timeout_seconds=self.timeout_seconds,
        )
        videos = payload.get("videos")
        if not isinstance(videos, list):
            raise PexelsClientError("Pexels response missing videos array.")
        logger.debug(f"Fetched {len(videos)} popular videos from Pexels (page={page}, per_page={per_page})")
        return videos
