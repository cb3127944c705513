from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ContextManager, Dict, Iterable, Iterator, List, Optional, Tuple, TYPE_CHECKING
import logging
import threading
import time

from manuscript_reviser.config import LLMConfig
from manuscript_reviser.errors import ProviderError, RevisionCancelled

if TYPE_CHECKING:
    import anthropic

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@dataclass
class CompletionOptions:
    """Per-request overrides."""
    max_tokens: int = 4096
    temperature: float = 0.7
    model: Optional[str] = None


class CompletionStream:
    """
    One streaming completion: a finite, single-use iterator of text chunks.

    ``cancel()`` may be called from any thread. Once cancelled, chunks that
    are still in flight are dropped and iteration ends with RevisionCancelled.
    """

    def __init__(self, open_source: Callable[[], ContextManager[Iterable[str]]]):
        self._open_source = open_source
        self._cancelled = threading.Event()
        self._started = False
        self._close_source: Optional[Callable[[], None]] = None
        self.chunk_count = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        if self._close_source is not None:
            self._close_source()

    def __iter__(self) -> Iterator[str]:
        if self._started:
            raise RuntimeError("CompletionStream cannot be restarted")
        self._started = True
        return self._iterate()

    def _iterate(self) -> Iterator[str]:
        if self.cancelled:
            raise RevisionCancelled()
        try:
            with self._open_source() as source:
                self._close_source = getattr(source, "close", None)
                for chunk in source:
                    if self.cancelled:
                        raise RevisionCancelled()
                    if chunk:
                        self.chunk_count += 1
                        yield chunk
        except RevisionCancelled:
            raise
        except ProviderError as e:
            if self.cancelled:
                raise RevisionCancelled() from e
            raise
        except Exception as e:
            if self.cancelled:
                raise RevisionCancelled() from e
            raise ProviderError(f"{type(e).__name__}: {e}") from e
        if self.cancelled:
            raise RevisionCancelled()


class _AnthropicSource:
    """Adapts a MessageStream so another thread can close it mid-read."""

    def __init__(self, stream):
        self._stream = stream

    def __iter__(self) -> Iterator[str]:
        return iter(self._stream.text_stream)

    def close(self) -> None:
        self._stream.close()


def split_system(messages: List[Message]) -> Tuple[Optional[str], List[Message]]:
    """Anthropic takes the system prompt as a top-level field."""
    system = None
    converted = []
    for msg in messages:
        if msg["role"] == "system":
            system = msg["content"]
            continue
        converted.append({"role": msg["role"], "content": msg["content"]})
    return system, converted


class CompletionStreamer:
    """Thin wrapper around Anthropic's streaming Messages API."""

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client: Optional["anthropic.Anthropic"] = None

    @property
    def client(self) -> "anthropic.Anthropic":
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self.config.api_key:
                raise ProviderError(
                    "No API key configured. Set ANTHROPIC_API_KEY or llm.api_key in the config file."
                )
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.config.api_key)
        return self._client

    def stream(self, messages: List[Message], options: Optional[CompletionOptions] = None) -> CompletionStream:
        options = options or CompletionOptions(
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        system, converted = split_system(messages)
        request = {
            "model": options.model or self.config.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": converted,
        }
        if system:
            request["system"] = system

        @contextmanager
        def open_source():
            import anthropic
            start_time = time.time()
            try:
                with self.client.messages.stream(**request) as stream:
                    yield _AnthropicSource(stream)
            except anthropic.APIStatusError as e:
                if e.status_code in (401, 403):
                    raise ProviderError(
                        "Anthropic API key authentication failed. Please check your key is valid."
                    ) from e
                raise ProviderError(f"Anthropic API request failed ({e.status_code}): {e.message}") from e
            except anthropic.APIError as e:
                raise ProviderError(f"Network error: {e}") from e
            logger.info(f"Stream finished in {time.time() - start_time:.1f}s ({request['model']})")

        return CompletionStream(open_source)

    def complete(
        self,
        messages: List[Message],
        options: Optional[CompletionOptions],
        on_chunk: Callable[[str], None],
        on_done: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> CompletionStream:
        """
        Callback form of ``stream``: runs the request on a worker thread.

        ``on_chunk`` fires zero or more times, then exactly one of ``on_done``
        or ``on_error``. After cancellation the terminal callback is
        ``on_error(RevisionCancelled())``. The returned stream is the cancel handle.
        """
        handle = self.stream(messages, options)

        def worker():
            try:
                for chunk in handle:
                    on_chunk(chunk)
            except (RevisionCancelled, ProviderError) as e:
                on_error(e)
                return
            on_done()

        threading.Thread(target=worker, daemon=True).start()
        return handle
