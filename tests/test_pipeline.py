import asyncio

import numpy as np
import pytest

from vaultscribe.errors import DecodeError, TerminalCallError, TransientCallError
from vaultscribe.services.events import PipelineObserver
from vaultscribe.services.pipeline import TranscriptionPipeline
from vaultscribe.services.providers import TranscriptionProvider
from vaultscribe.services.retry import RetryPolicy
from vaultscribe.settings import PipelineSettings

RATE = 16_000

SMALL = PipelineSettings(
    max_chunk_seconds=1.0,
    overlap_seconds=0.2,
    min_chunk_seconds=0.2,
    min_silence_seconds=0.5,
    replacement_silence_seconds=0.25,
    encoding="wav",
)


def _tone(seconds: float, level: float = 0.3) -> np.ndarray:
    return np.full(int(seconds * RATE), level, dtype=np.float32)


class FakeProvider(TranscriptionProvider):
    name = "fake"

    def __init__(self, *, upload: bool = False, fail_index: int | None = None, fail_delete: bool = False):
        self.supports_upload = upload
        self.fail_index = fail_index
        self.fail_delete = fail_delete
        self.uploads: list[int] = []
        self.calls: list[int] = []
        self.deleted: list[str] = []

    async def upload(self, chunk):
        self.uploads.append(chunk.index)
        return {"name": f"files/{chunk.index}"}

    async def transcribe(self, chunk, resource=None):
        self.calls.append(chunk.index)
        assert chunk.mime_type == "audio/wav"
        assert chunk.data[:4] == b"RIFF"
        if self.supports_upload:
            assert resource == {"name": f"files/{chunk.index}"}
        # later chunks finish first
        await asyncio.sleep(0.005 * (4 - chunk.index))
        if chunk.index == self.fail_index:
            raise TransientCallError("server unavailable", status_code=503)
        return f"text{chunk.index}"

    async def delete_resource(self, resource):
        if self.fail_delete:
            raise TransientCallError("delete failed")
        self.deleted.append(resource["name"])


class RecordingObserver(PipelineObserver):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def preprocess_started(self, size_bytes):
        self.events.append(("preprocess_started",))

    def preprocess_finished(self, chunk_count, seconds):
        self.events.append(("preprocess_finished", chunk_count))

    def upload_started(self, chunk_count):
        self.events.append(("upload_started", chunk_count))

    def chunk_finished(self, completed, total, index):
        self.events.append(("chunk_finished", completed, total, index))

    def assembling(self):
        self.events.append(("assembling",))

    def done(self, text_length, seconds):
        self.events.append(("done", text_length))


def _pipeline(provider, fake_sleep, observer=None, limit=2):
    return TranscriptionPipeline(
        provider,
        SMALL,
        concurrency_limit=limit,
        observer=observer,
        retry=RetryPolicy(3, 1.0, sleep=fake_sleep),
    )


def test_preprocess_collapses_silence_before_chunking(wav_factory, fake_sleep):
    audio = np.concatenate([_tone(1.0), np.zeros(2 * RATE, dtype=np.float32), _tone(1.0)])
    chunks = _pipeline(FakeProvider(), fake_sleep).preprocess(wav_factory(audio, RATE))

    assert [chunk.index for chunk in chunks] == [0, 1, 2]
    assert chunks[-1].end_sample == int(2.25 * RATE)
    assert [chunk.has_overlap for chunk in chunks] == [False, True, True]


@pytest.mark.asyncio
async def test_transcribe_assembles_in_index_order(wav_factory, fake_sleep):
    provider = FakeProvider()
    observer = RecordingObserver()
    text = await _pipeline(provider, fake_sleep, observer).transcribe(wav_factory(_tone(3.5), RATE))

    assert text == "text0 text1 text2 text3"
    assert sorted(provider.calls) == [0, 1, 2, 3]
    names = [event[0] for event in observer.events]
    assert names[:3] == ["preprocess_started", "preprocess_finished", "upload_started"]
    assert names[-2:] == ["assembling", "done"]
    progress = [event for event in observer.events if event[0] == "chunk_finished"]
    assert [event[1] for event in progress] == [1, 2, 3, 4]
    assert all(event[2] == 4 for event in progress)
    assert observer.events[-1] == ("done", len(text))


@pytest.mark.asyncio
async def test_uploaded_resources_are_deleted(wav_factory, fake_sleep):
    provider = FakeProvider(upload=True)
    await _pipeline(provider, fake_sleep).transcribe(wav_factory(_tone(2.5), RATE))
    assert sorted(provider.uploads) == [0, 1, 2]
    assert sorted(provider.deleted) == ["files/0", "files/1", "files/2"]


@pytest.mark.asyncio
async def test_delete_failure_does_not_fail_chunk(wav_factory, fake_sleep):
    provider = FakeProvider(upload=True, fail_delete=True)
    text = await _pipeline(provider, fake_sleep).transcribe(wav_factory(_tone(1.5), RATE))
    assert text == "text0 text1"


@pytest.mark.asyncio
async def test_chunk_failure_fails_whole_transcription(wav_factory, fake_sleep):
    provider = FakeProvider(fail_index=1)
    observer = RecordingObserver()
    with pytest.raises(TerminalCallError, match="failed after 3 attempts"):
        await _pipeline(provider, fake_sleep, observer).transcribe(wav_factory(_tone(3.5), RATE))
    assert provider.calls.count(1) == 3
    assert fake_sleep.delays == [1.0, 2.0]
    assert ("assembling",) not in observer.events


@pytest.mark.asyncio
async def test_undecodable_audio_makes_no_remote_calls(fake_sleep):
    provider = FakeProvider()
    with pytest.raises(DecodeError):
        await _pipeline(provider, fake_sleep).transcribe(b"definitely not audio")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_repetitions_are_cleaned_after_assembly(wav_factory, fake_sleep):
    class Stutter(FakeProvider):
        async def transcribe(self, chunk, resource=None):
            return "um" + "m" * 30

    text = await _pipeline(Stutter(), fake_sleep).transcribe(wav_factory(_tone(0.5), RATE))
    assert text == "um"


@pytest.mark.asyncio
async def test_audio_shorter_than_minimum_yields_empty_text(wav_factory, fake_sleep):
    provider = FakeProvider()
    text = await _pipeline(provider, fake_sleep).transcribe(wav_factory(_tone(0.1), RATE))
    assert text == ""
    assert provider.calls == []
