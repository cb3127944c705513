from contextlib import contextmanager, nullcontext
import threading

import pytest

from manuscript_reviser.config import LLMConfig
from manuscript_reviser.errors import ProviderError, RevisionCancelled
from manuscript_reviser.llm.client import CompletionStream, CompletionStreamer, split_system


def _stream(chunks):
    return CompletionStream(lambda: nullcontext(chunks))


class ListStreamer(CompletionStreamer):
    def __init__(self, chunks):
        super().__init__(LLMConfig())
        self.chunks = chunks

    def stream(self, messages, options=None):
        return _stream(self.chunks)


def test_stream_yields_chunks_and_skips_empty():
    s = _stream(["Hel", "", "lo"])
    assert list(s) == ["Hel", "lo"]
    assert s.chunk_count == 2


def test_stream_is_single_use():
    s = _stream(["a"])
    list(s)
    with pytest.raises(RuntimeError):
        iter(s)


def test_cancel_before_start():
    s = _stream(["a", "b"])
    s.cancel()
    with pytest.raises(RevisionCancelled):
        list(s)


def test_cancel_mid_stream_drops_remaining_chunks():
    s = _stream(["a", "b", "c"])
    received = []
    with pytest.raises(RevisionCancelled):
        for chunk in s:
            received.append(chunk)
            s.cancel()
    assert received == ["a"]


def test_source_failure_becomes_provider_error():
    @contextmanager
    def broken():
        def gen():
            yield "a"
            raise ConnectionError("reset by peer")
        yield gen()

    s = CompletionStream(broken)
    with pytest.raises(ProviderError, match="reset by peer"):
        list(s)


def test_missing_api_key():
    with pytest.raises(ProviderError):
        CompletionStreamer(LLMConfig(api_key="")).client


def test_split_system():
    system, rest = split_system([
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hi"},
    ])
    assert system == "Be brief."
    assert rest == [{"role": "user", "content": "Hi"}]


def test_complete_callbacks():
    done = threading.Event()
    chunks, errors = [], []
    ListStreamer(["one ", "two"]).complete(
        [{"role": "user", "content": "x"}], None,
        on_chunk=chunks.append, on_done=done.set, on_error=errors.append,
    )
    assert done.wait(5)
    assert chunks == ["one ", "two"]
    assert errors == []


def test_complete_reports_cancellation_as_error():
    failed = threading.Event()
    errors = []

    def on_error(e):
        errors.append(e)
        failed.set()

    streamer = ListStreamer(["never"])
    original = streamer.stream

    def cancelled_stream(messages, options=None):
        s = original(messages, options)
        s.cancel()
        return s

    streamer.stream = cancelled_stream
    streamer.complete([], None, on_chunk=lambda c: None, on_done=lambda: None, on_error=on_error)
    assert failed.wait(5)
    assert isinstance(errors[0], RevisionCancelled)
