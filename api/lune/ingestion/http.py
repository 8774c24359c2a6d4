from __future__ import annotations

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from lune.core.config import settings


class ExternalAPIError(Exception):
    pass


async def fetch_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict | None = None,
    timeout: float | None = None,
) -> dict:
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.external_max_attempts),
        wait=wait_exponential_jitter(initial=1, max=8),
        retry=retry_if_exception_type((httpx.TransportError, ExternalAPIError)),
        reraise=True,
    ):
        with attempt:
            async with httpx.AsyncClient(
                timeout=timeout or settings.external_request_timeout_seconds,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, headers=headers, params=params)
                if response.status_code >= 500:
                    raise ExternalAPIError(f"Server error {response.status_code}")
                response.raise_for_status()
                return response.json()
    raise ExternalAPIError("Unreachable")
