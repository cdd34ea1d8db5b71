"""Download uploads from Supabase Storage over its REST API."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from lead_importer.core.errors import FileFetchError

logger = logging.getLogger(__name__)
TIMEOUT_SECONDS = 30.0


class SupabaseStorage:
    """Authenticated object reads using the service-role key.

    Args:
        base_url: Project URL, e.g. https://xyz.supabase.co
        service_key: Service-role key (bypasses bucket policies)
        timeout: Per-request timeout in seconds
        client: Optional pre-built client (tests pass one with a mock transport)
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        timeout: float = TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def object_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{quote(bucket)}/{quote(path.lstrip('/'), safe='/')}"

    async def download(self, bucket: str, path: str) -> bytes:
        url = self.object_url(bucket, path)
        try:
            response = await self._client.get(url, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error(f"Storage request for {bucket}/{path} failed: {e}")
            raise FileFetchError(f"File download failed: {e}") from e

        if response.status_code >= 400:
            # Storage errors come back as JSON {"error": ..., "message": ...}
            detail = response.text
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                detail = body.get("message") or body.get("error") or detail
            raise FileFetchError(
                f"File download failed: {bucket}/{path} returned {response.status_code}: {detail}"
            )

        logger.info(f"Downloaded {bucket}/{path} ({len(response.content)} bytes)")
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()
