"""Async HTTP client for the Gemini REST API (files + generateContent)."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import httpx

from ..errors import MissingConfigError, TransientCallError

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 120.0,
        base_url: str = GEMINI_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise MissingConfigError("Gemini API key is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> dict:
        headers = {"x-goog-api-key": self.api_key}
        if extra:
            headers.update(extra)
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _send(self, what: str, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as exc:
            raise TransientCallError(
                f"{what} failed: {exc.response.status_code} {exc.response.text[:200]}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientCallError(f"{what} failed: {exc}") from exc

    async def upload_file(self, data: bytes, mime_type: str, display_name: str) -> Dict[str, Any]:
        """Resumable two-step upload; returns the ``file`` resource."""
        start = await self._send(
            "Upload start",
            "POST",
            self._url("/upload/v1beta/files"),
            headers=self._headers(
                {
                    "X-Goog-Upload-Protocol": "resumable",
                    "X-Goog-Upload-Command": "start",
                    "X-Goog-Upload-Header-Content-Length": str(len(data)),
                    "X-Goog-Upload-Header-Content-Type": mime_type,
                }
            ),
            json={"file": {"display_name": display_name}},
        )
        upload_url = start.headers.get("x-goog-upload-url")
        if not upload_url:
            raise TransientCallError("Upload start failed: no upload URL returned")
        finished = await self._send(
            "Upload",
            "POST",
            upload_url,
            headers=self._headers(
                {
                    "X-Goog-Upload-Offset": "0",
                    "X-Goog-Upload-Command": "upload, finalize",
                }
            ),
            content=data,
        )
        try:
            resource = finished.json()["file"]
        except (ValueError, KeyError) as exc:
            raise TransientCallError(f"Invalid upload response: {exc}") from exc
        return resource

    async def delete_file(self, name: str) -> None:
        await self._send("Delete", "DELETE", self._url(f"/v1beta/{name}"), headers=self._headers())

    async def generate_content(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._send(
            "generateContent",
            "POST",
            self._url(f"/v1beta/models/{model}:generateContent"),
            headers=self._headers({"Content-Type": "application/json"}),
            content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        )
        try:
            return resp.json()
        except ValueError as exc:
            raise TransientCallError(f"Invalid generateContent response: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def generation_config(temperature: float | None, thinking_level: str | None) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if temperature is not None:
        config["temperature"] = temperature
    if thinking_level:
        config["thinkingConfig"] = {"thinkingLevel": thinking_level}
    return config


def response_text(payload: Dict[str, Any]) -> str | None:
    """Concatenate text parts of the first candidate; ``None`` when there are none."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
    ]
    if not texts:
        return None
    return "".join(texts)


__all__ = ["GEMINI_BASE_URL", "GeminiClient", "generation_config", "response_text"]
