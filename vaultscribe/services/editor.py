"""LLM post-editing of finished transcripts."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from ..errors import EditorResponseError, MissingConfigError, ScribeError, TransientCallError
from ..settings import EditorSettings
from .gemini import GeminiClient, generation_config, response_text
from .retry import RetryPolicy

LOGGER = logging.getLogger("vaultscribe.editor")


def resolve_system_prompt(settings: EditorSettings, override: Optional[str] = None) -> str:
    """Explicit override, else the active template, else the first template."""
    if override is not None:
        return override
    if not settings.system_prompt_templates:
        return ""
    active = settings.find_template(settings.active_system_prompt_template_name)
    if active is not None:
        return active.prompt
    return settings.system_prompt_templates[0].prompt


def build_user_content(settings: EditorSettings, text: str) -> str:
    if settings.user_prompt:
        return f"{settings.user_prompt}\n\n{text}"
    return text


class GeminiEditBackend:
    def __init__(self, settings: EditorSettings, *, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._gemini = GeminiClient(settings.api_key, timeout=settings.request_timeout, client=client)

    async def complete(self, system_prompt: str, user_content: str) -> str:
        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": user_content}]}]}
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        config = generation_config(self.settings.temperature, self.settings.thinking_level)
        if config:
            payload["generationConfig"] = config
        response = await self._gemini.generate_content(self.settings.model, payload)
        text = response_text(response)
        if text is None:
            raise EditorResponseError(_describe_empty_response(response))
        return text

    async def aclose(self) -> None:
        await self._gemini.aclose()


class OpenAIEditBackend:
    def __init__(self, settings: EditorSettings, *, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self._client = client or AsyncOpenAI(api_key=settings.api_key, timeout=settings.request_timeout)

    async def complete(self, system_prompt: str, user_content: str) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_content})
        try:
            completion = await self._client.chat.completions.create(
                model=self.settings.model,
                messages=messages,
                temperature=self.settings.temperature,
            )
        except OpenAIError as exc:
            raise TransientCallError(
                f"OpenAI edit request failed: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc
        content = completion.choices[0].message.content if completion.choices else None
        if not isinstance(content, str):
            raise EditorResponseError("Invalid response from OpenAI editing API: No text content found.")
        return content

    async def aclose(self) -> None:
        await self._client.close()


def _describe_empty_response(response: dict) -> str:
    detail = "Invalid response from Gemini editing API: No text content found."
    feedback = response.get("promptFeedback")
    if feedback:
        detail += f" Prompt feedback: {json.dumps(feedback, ensure_ascii=False)}"
        reason = feedback.get("blockReason")
        if reason:
            detail += f" Block Reason: {reason}"
            message = feedback.get("blockReasonMessage")
            if message:
                detail += f" ({message})"
    return detail


class TranscriptEditor:
    """Single retry-wrapped text-to-text call; the transcript is never chunked."""

    def __init__(
        self,
        settings: EditorSettings,
        *,
        backend: Any = None,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self.settings = settings
        self._backend = backend
        self.retry = retry or RetryPolicy(3, 1.0, context="Editor request")

    def _get_backend(self):
        if self._backend is None:
            if not self.settings.api_key:
                raise MissingConfigError("Editor API key is not configured")
            if self.settings.provider == "gemini":
                self._backend = GeminiEditBackend(self.settings)
            elif self.settings.provider == "openai":
                self._backend = OpenAIEditBackend(self.settings)
            else:
                raise ScribeError(f"Unsupported editor provider: {self.settings.provider}")
        return self._backend

    async def edit(self, text: str, system_prompt: Optional[str] = None) -> str:
        if not self.settings.api_key:
            raise MissingConfigError("Editor API key is not configured")
        backend = self._get_backend()
        prompt = resolve_system_prompt(self.settings, system_prompt)
        content = build_user_content(self.settings, text)
        LOGGER.info("Generating edited text (%d characters in)", len(text))
        return await self.retry.call(lambda: backend.complete(prompt, content))

    async def aclose(self) -> None:
        if self._backend is not None:
            await self._backend.aclose()


__all__ = [
    "GeminiEditBackend",
    "OpenAIEditBackend",
    "TranscriptEditor",
    "build_user_content",
    "resolve_system_prompt",
]
