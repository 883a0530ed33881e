"""Host-facing operations: transcribe an audio file, edit a transcript, save a recording."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..audio.types import RecordingResult
from ..errors import MissingConfigError, ScribeError
from ..settings import AppSettings
from ..store.file_store import FileStore, edited_transcript_name, raw_transcript_name, transcript_basename
from .editor import TranscriptEditor
from .pipeline import TranscriptionPipeline

LOGGER = logging.getLogger("vaultscribe.workflow")

AUDIO_EXTENSIONS = {".webm", ".m4a", ".mp3", ".wav", ".flac", ".ogg"}


@dataclass(slots=True)
class WorkflowResult:
    transcript: str
    raw_path: Optional[Path] = None
    edited_path: Optional[Path] = None

    @property
    def final_path(self) -> Optional[Path]:
        return self.edited_path or self.raw_path


class TranscriptionWorkflow:
    def __init__(
        self,
        settings: AppSettings,
        store: FileStore,
        pipeline: TranscriptionPipeline,
        editor: Optional[TranscriptEditor] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.pipeline = pipeline
        self.editor = editor or TranscriptEditor(settings.editor)

    def _check_transcriber_config(self) -> None:
        transcriber = self.settings.transcriber
        if not transcriber.api_key:
            raise MissingConfigError("Transcriber API key is not configured")
        if not transcriber.model:
            raise MissingConfigError("Transcriber model is not configured")

    def _check_editor_config(self) -> None:
        editor = self.settings.editor
        if not editor.api_key:
            raise MissingConfigError("Editor API key is not configured")
        if not editor.model:
            raise MissingConfigError("Editor model is not configured")

    def save_recording(self, result: RecordingResult, ext: str = "flac") -> Path:
        if not result.audio_bytes:
            raise ScribeError("Recording is empty")
        path = self.store.save_recording(result.audio_bytes, self.settings.transcriber.audio_dir, ext)
        LOGGER.info("Recording saved to %s (%.1fs, %d bytes)", path, result.duration_seconds, result.size_bytes)
        return path

    async def transcribe_file(self, audio_path: Path, system_prompt: Optional[str] = None) -> WorkflowResult:
        """Transcribe ``audio_path``; edit with ``system_prompt`` when the editor is enabled."""
        audio_path = Path(audio_path)
        if audio_path.suffix.lower() not in AUDIO_EXTENSIONS:
            raise ScribeError(f"Unsupported audio file: {audio_path.name}")
        self._check_transcriber_config()
        data = audio_path.read_bytes()
        return await self.transcribe_bytes(data, transcript_basename(audio_path.name), system_prompt)

    async def transcribe_bytes(
        self, data: bytes, basename: str, system_prompt: Optional[str] = None
    ) -> WorkflowResult:
        self._check_transcriber_config()
        editor_settings = self.settings.editor
        edit_requested = editor_settings.enabled and system_prompt is not None
        if edit_requested:
            self._check_editor_config()
        transcript = await self.pipeline.transcribe(data)
        directory = self.settings.transcriber.transcript_dir

        if not edit_requested:
            raw_path = self.store.save_text(raw_transcript_name(basename), transcript, directory)
            LOGGER.info("Transcript saved to %s", raw_path)
            return WorkflowResult(transcript=transcript, raw_path=raw_path)

        result = WorkflowResult(transcript=transcript)
        if editor_settings.keep_original:
            result.raw_path = self.store.save_text(raw_transcript_name(basename), transcript, directory)
            LOGGER.info("Raw transcript saved to %s", result.raw_path)
        edited = await self.editor.edit(transcript, system_prompt)
        result.edited_path = self.store.save_text(edited_transcript_name(basename), edited, directory)
        LOGGER.info("Edited transcript saved to %s", result.edited_path)
        return result

    async def edit_transcript(self, transcript_path: Path, template_name: str) -> Path:
        """Re-edit an existing markdown transcript with a named prompt template."""
        transcript_path = Path(transcript_path)
        if transcript_path.suffix.lower() != ".md":
            raise ScribeError("Please open a Markdown file to edit.")
        if not self.settings.editor.enabled:
            raise ScribeError("AI Editor is not enabled in settings.")
        text = transcript_path.read_text(encoding="utf-8")
        if not text.strip():
            raise ScribeError("The file is empty.")
        template = self.settings.editor.find_template(template_name)
        if template is None:
            raise ScribeError(f"Selected template not found: {template_name}")
        edited = await self.editor.edit(text, template.prompt)
        basename = transcript_basename(transcript_path.name)
        path = self.store.save_text(edited_transcript_name(basename), edited, transcript_path.parent)
        LOGGER.info("Edited transcript saved to %s", path)
        return path


__all__ = ["AUDIO_EXTENSIONS", "TranscriptionWorkflow", "WorkflowResult"]
