"""Remote transcription providers behind one capability interface."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from ..audio.types import EncodedChunk
from ..errors import MissingConfigError, ScribeError, TransientCallError
from ..settings import TranscriberSettings
from .gemini import GeminiClient, generation_config, response_text

LOGGER = logging.getLogger("vaultscribe.providers")

TRANSCRIPTION_PROMPT = (
    "Transcribe this audio. If the language is Chinese, please use Simplified Chinese characters. "
    "Provide only the direct transcription text without any introductory phrases."
)


class TranscriptionProvider:
    """Capability interface the pipeline is written against.

    ``transcribe`` is required. Providers that need the audio uploaded first
    set ``supports_upload`` and implement ``upload``/``delete_resource``.
    """

    name = "base"
    supports_upload = False

    async def upload(self, chunk: EncodedChunk) -> Any:
        return None

    async def transcribe(self, chunk: EncodedChunk, resource: Any = None) -> str:
        raise NotImplementedError

    async def delete_resource(self, resource: Any) -> None:
        return None

    async def aclose(self) -> None:
        return None


class OpenAITranscriber(TranscriptionProvider):
    name = "openai"

    def __init__(self, settings: TranscriberSettings, *, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self._client = client or AsyncOpenAI(api_key=settings.api_key, timeout=settings.request_timeout)

    async def transcribe(self, chunk: EncodedChunk, resource: Any = None) -> str:
        options: dict[str, Any] = {}
        if self.settings.temperature is not None:
            options["temperature"] = self.settings.temperature
        try:
            transcription = await self._client.audio.transcriptions.create(
                model=self.settings.model,
                file=(chunk.filename, chunk.data, chunk.mime_type),
                response_format="text",
                **options,
            )
        except OpenAIError as exc:
            raise TransientCallError(
                f"OpenAI transcription failed: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc
        if isinstance(transcription, str):
            return transcription.strip()
        return (getattr(transcription, "text", "") or "").strip()

    async def aclose(self) -> None:
        await self._client.close()


class GeminiTranscriber(TranscriptionProvider):
    """Gemini transcription; uploads through the Files API unless ``inline``."""

    name = "gemini"

    def __init__(
        self,
        settings: TranscriberSettings,
        *,
        inline: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self.inline = inline
        self.supports_upload = not inline
        self._gemini = GeminiClient(settings.api_key, timeout=settings.request_timeout, client=client)

    async def upload(self, chunk: EncodedChunk) -> dict:
        return await self._gemini.upload_file(chunk.data, chunk.mime_type, chunk.filename)

    def _audio_part(self, chunk: EncodedChunk, resource: Any) -> dict:
        if resource:
            return {
                "file_data": {
                    "mime_type": resource.get("mimeType", chunk.mime_type),
                    "file_uri": resource["uri"],
                }
            }
        return {
            "inline_data": {
                "mime_type": chunk.mime_type,
                "data": base64.b64encode(chunk.data).decode("ascii"),
            }
        }

    async def transcribe(self, chunk: EncodedChunk, resource: Any = None) -> str:
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": TRANSCRIPTION_PROMPT}, self._audio_part(chunk, resource)],
                }
            ]
        }
        config = generation_config(self.settings.temperature, self.settings.thinking_level)
        if config:
            payload["generationConfig"] = config
        response = await self._gemini.generate_content(self.settings.model, payload)
        return (response_text(response) or "").strip()

    async def delete_resource(self, resource: Any) -> None:
        if resource and resource.get("name"):
            await self._gemini.delete_file(resource["name"])

    async def aclose(self) -> None:
        await self._gemini.aclose()


def build_provider(settings: TranscriberSettings) -> TranscriptionProvider:
    """Select the provider once, at configuration time."""
    if not settings.api_key:
        raise MissingConfigError("Transcriber API key is not configured")
    if not settings.model:
        raise MissingConfigError("Transcriber model is not configured")
    if settings.provider == "openai":
        return OpenAITranscriber(settings)
    if settings.provider == "gemini":
        return GeminiTranscriber(settings)
    raise ScribeError(f"Unsupported transcription provider: {settings.provider}")


__all__ = [
    "GeminiTranscriber",
    "OpenAITranscriber",
    "TRANSCRIPTION_PROMPT",
    "TranscriptionProvider",
    "build_provider",
]
