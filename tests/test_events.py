import logging

from vaultscribe.services.events import CompositeObserver, LoggingObserver, PipelineObserver


class Broken(PipelineObserver):
    def chunk_finished(self, completed, total, index):
        raise RuntimeError("ui went away")


class Counting(PipelineObserver):
    def __init__(self) -> None:
        self.seen = []

    def chunk_finished(self, completed, total, index):
        self.seen.append((completed, total, index))


def test_composite_observer_survives_failing_observer(caplog):
    counting = Counting()
    composite = CompositeObserver([Broken(), counting])
    with caplog.at_level(logging.WARNING, logger="vaultscribe.events"):
        composite.chunk_finished(1, 3, 2)
    assert counting.seen == [(1, 3, 2)]
    assert "ui went away" in caplog.text


def test_logging_observer_reports_progress(caplog):
    observer = LoggingObserver()
    with caplog.at_level(logging.INFO, logger="vaultscribe.pipeline"):
        observer.preprocess_finished(4, 0.5)
        observer.chunk_finished(2, 4, 0)
    assert "Preprocessing completed: 4 chunks" in caplog.text
    assert "Chunk 1 done (2/4)" in caplog.text
