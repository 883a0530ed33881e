"""Transcriber, editor and pipeline settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

Provider = Literal["openai", "gemini"]

DEFAULT_SYSTEM_PROMPT = """You are a professional meeting-minutes assistant. Given a raw transcript, output a structured Markdown document.

1. Use three level-2 headings: `## Summary`, `## Key Points`, `## Transcript`.
2. In **Summary**, distill the core conclusions in 200-300 words.
3. In **Key Points**, list at most 10 concise bullet points.
4. In **Transcript**:
   - Correct clearly mistranscribed words from context and put the original text in parentheses after each correction.
   - Remove fillers, stammers and repetitions.
   - Start a new paragraph at every speaker change or every 4-5 sentences, separated by blank lines.
   - Keep each paragraph in its original language.

Do not add information or commentary. Start directly with `## Summary` and output only the Markdown document."""


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


DEFAULT_TRANSCRIBER_MODELS = {"openai": "gpt-4o-transcribe", "gemini": "gemini-2.5-flash"}


def _default_api_key() -> str:
    provider = os.getenv("TRANSCRIBER_PROVIDER", "openai")
    fallback = "GEMINI_API_KEY" if provider == "gemini" else "OPENAI_API_KEY"
    return os.getenv("TRANSCRIBER_API_KEY") or os.getenv(fallback) or ""


class TranscriberSettings(BaseModel):
    provider: Provider = Field(default=os.getenv("TRANSCRIBER_PROVIDER", "openai"))
    api_key: str = Field(default_factory=_default_api_key)
    model: str = Field(default="")
    temperature: float | None = Field(default=None)
    thinking_level: str | None = Field(default=os.getenv("TRANSCRIBER_THINKING_LEVEL"))
    audio_dir: str = Field(default=os.getenv("AUDIO_DIR", ""))
    transcript_dir: str = Field(default=os.getenv("TRANSCRIPT_DIR", ""))
    concurrency_limit: int = Field(default=int(os.getenv("TRANSCRIBER_CONCURRENCY", "6")))
    request_timeout: float = Field(default=float(os.getenv("TRANSCRIBER_TIMEOUT", "120")))

    @model_validator(mode="before")
    @classmethod
    def _default_model_for_provider(cls, data):
        if isinstance(data, dict) and "model" not in data:
            provider = data.get("provider") or os.getenv("TRANSCRIBER_PROVIDER", "openai")
            data = {**data, "model": os.getenv("TRANSCRIBER_MODEL") or DEFAULT_TRANSCRIBER_MODELS.get(provider, "")}
        return data

    @field_validator("concurrency_limit", mode="before")
    @classmethod
    def _clamp_concurrency(cls, value):
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return 6
        return max(1, limit)


class SystemPromptTemplate(BaseModel):
    name: str
    prompt: str


class EditorSettings(BaseModel):
    enabled: bool = Field(default=_env_flag("EDITOR_ENABLED", "true"))
    provider: Provider = Field(default=os.getenv("EDITOR_PROVIDER", "gemini"))
    api_key: str = Field(default=os.getenv("EDITOR_API_KEY") or os.getenv("GEMINI_API_KEY") or "")
    model: str = Field(default=os.getenv("EDITOR_MODEL", "gemini-2.5-pro"))
    system_prompt_templates: List[SystemPromptTemplate] = Field(
        default_factory=lambda: [SystemPromptTemplate(name="Default", prompt=DEFAULT_SYSTEM_PROMPT)]
    )
    active_system_prompt_template_name: str = Field(default="Default")
    user_prompt: str = Field(default="Here's the transcript:\n\n")
    temperature: float = Field(default=0.3)
    thinking_level: str | None = Field(default=os.getenv("EDITOR_THINKING_LEVEL"))
    keep_original: bool = Field(default=True)
    request_timeout: float = Field(default=float(os.getenv("EDITOR_TIMEOUT", "300")))

    def find_template(self, name: str) -> SystemPromptTemplate | None:
        for template in self.system_prompt_templates:
            if template.name == name:
                return template
        return None


class PipelineSettings(BaseModel):
    target_sample_rate: int = Field(default=16_000)
    silence_threshold: float = Field(default=0.01)
    min_silence_seconds: float = Field(default=2.0)
    replacement_silence_seconds: float = Field(default=1.0)
    max_chunk_seconds: float = Field(default=300.0)
    overlap_seconds: float = Field(default=2.0)
    min_chunk_seconds: float = Field(default=2.0)
    max_repeats: int = Field(default=10)
    retry_attempts: int = Field(default=int(os.getenv("TRANSCRIBER_RETRY_ATTEMPTS", "3")))
    retry_base_delay: float = Field(default=float(os.getenv("TRANSCRIBER_RETRY_DELAY", "1.0")))
    encoding: Literal["wav", "flac"] = Field(default=os.getenv("TRANSCRIBER_ENCODING", "wav"))


class AppSettings(BaseModel):
    transcriber: TranscriberSettings = Field(default_factory=TranscriberSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)


@lru_cache()
def get_settings() -> AppSettings:
    return AppSettings()
