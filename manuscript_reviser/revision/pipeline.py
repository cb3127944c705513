"""
Revision Pipeline

Runs a queue of documents through the model one at a time:
1. Read the source and match it to an analysis record
2. Build the guidance brief
3. Pick the next free revision name and create the empty file
4. Show source and revision side by side
5. Stream the rewrite into the revision as it arrives
6. Save the revision, then pause for review or move on
"""
from __future__ import annotations
from pathlib import PurePosixPath
from typing import Callable, List, Optional, Sequence, Union
import logging
import threading
import time

from manuscript_reviser.adapters.storage import LocalFileStore
from manuscript_reviser.analysis import AnalysisSet
from manuscript_reviser.config import ReviserConfig
from manuscript_reviser.errors import PipelineBusyError, RevisionCancelled
from manuscript_reviser.ir import (
    AdvanceMode,
    DocumentRef,
    GuidanceKind,
    JobStatus,
    PipelineStatus,
    RevisionGuidance,
    RevisionJob,
    TERMINAL_STATUSES,
)
from manuscript_reviser.llm.client import CompletionOptions, CompletionStreamer
from manuscript_reviser.revision.guidance import build_guidance, match_record
from manuscript_reviser.revision.naming import next_revision_name, revision_name_for, split_base_name
from manuscript_reviser.revision.prompts import build_messages
from manuscript_reviser.session import EditingSession

logger = logging.getLogger(__name__)

StatusListener = Callable[[PipelineStatus], None]
ACTIVE_STATUSES = (JobStatus.RUNNING, JobStatus.PAUSED)


def _as_ref(doc: Union[DocumentRef, str]) -> DocumentRef:
    if isinstance(doc, DocumentRef):
        return doc
    return DocumentRef(path=doc, name=PurePosixPath(doc).name)


class RevisionPipeline:
    """
    Sequential revision runner with pause/resume/cancel.

    Usage:
        pipeline = RevisionPipeline(store, CompletionStreamer(config.llm))
        pipeline.start(["ch/01-Arrival.md", "ch/02-Storm.md"], GuidanceKind.BOTH)
        pipeline.wait_for(JobStatus.PAUSED)   # first chapter saved
        pipeline.resume()
    """

    def __init__(
        self,
        store: LocalFileStore,
        streamer: CompletionStreamer,
        session: Optional[EditingSession] = None,
        analysis: Optional[AnalysisSet] = None,
        config: Optional[ReviserConfig] = None,
    ):
        self.store = store
        self.streamer = streamer
        self.session = session or EditingSession(store)
        self.analysis = analysis or AnalysisSet()
        self.config = config or ReviserConfig()

        self._job = RevisionJob(advance_mode=self.config.advance_mode)
        self._cond = threading.Condition(threading.RLock())
        self._cancel = threading.Event()   # replaced for every run
        self._resume_requested = False
        self._active_stream = None
        self._worker: Optional[threading.Thread] = None
        self._listeners: List[StatusListener] = []
        self._guidance_kind = GuidanceKind.BOTH
        self._custom_text = ""
        self.live_text = ""

    # --- Observation ---

    @property
    def status(self) -> PipelineStatus:
        with self._cond:
            job = self._job
            name = job.queue[job.cursor].name if 0 <= job.cursor < len(job.queue) else ""
            return PipelineStatus(
                status=job.status,
                current_index=job.cursor,
                total_files=len(job.queue),
                current_file_name=name,
                advance_mode=job.advance_mode,
                error_message=job.error_message,
                completed_paths=tuple(job.completed_paths),
            )

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Call ``listener(status)`` after every transition; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _emit(self) -> None:
        snapshot = self.status
        for listener in list(self._listeners):
            listener(snapshot)

    def _transition(self, status: JobStatus, error: Optional[str] = None,
                    only_from: Sequence[JobStatus] = ACTIVE_STATUSES) -> bool:
        with self._cond:
            if self._job.status not in only_from:
                return False
            self._job.status = status
            if error is not None:
                self._job.error_message = error
            self._cond.notify_all()
        self._emit()
        return True

    def wait_for(self, *statuses: JobStatus, timeout: Optional[float] = None) -> bool:
        """Block until the status is one of ``statuses``. False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._job.status in statuses, timeout)

    def wait(self, timeout: Optional[float] = None) -> PipelineStatus:
        """Join the background worker, if any, and return the final status."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return self.status

    # --- Actions ---

    def start(self, documents: Sequence[Union[DocumentRef, str]], guidance_kind: GuidanceKind,
              custom_text: str = "") -> None:
        """Begin a run on a background thread."""
        cancel = self._begin(documents, guidance_kind, custom_text)
        self._worker = threading.Thread(target=self._run_queue, args=(cancel,),
                                        name="revision-pipeline", daemon=True)
        self._worker.start()

    def run(self, documents: Sequence[Union[DocumentRef, str]], guidance_kind: GuidanceKind,
            custom_text: str = "") -> PipelineStatus:
        """
        Run the whole queue on the calling thread.

        In PAUSE mode another thread has to call ``resume()`` or ``cancel()``.
        """
        cancel = self._begin(documents, guidance_kind, custom_text)
        self._worker = None
        self._run_queue(cancel)
        return self.status

    def _begin(self, documents, guidance_kind: GuidanceKind, custom_text: str) -> threading.Event:
        with self._cond:
            if self._job.status is not JobStatus.IDLE:
                raise PipelineBusyError(f"Pipeline is {self._job.status.value}; reset it before starting again")
            if self._worker is not None and self._worker.is_alive():
                raise PipelineBusyError("Previous run is still shutting down")
            self._job = RevisionJob(
                queue=[_as_ref(d) for d in documents],
                cursor=0,
                status=JobStatus.RUNNING,
                advance_mode=self._job.advance_mode,
            )
            self._guidance_kind = guidance_kind
            self._custom_text = custom_text
            self._cancel = threading.Event()
            self._resume_requested = False
            cancel = self._cancel
            self._cond.notify_all()
        logger.info(f"Starting revision of {len(self._job.queue)} documents ({guidance_kind.value} guidance)")
        self._emit()
        return cancel

    def resume(self) -> bool:
        with self._cond:
            if self._job.status is not JobStatus.PAUSED:
                return False
            self._resume_requested = True
        return self._transition(JobStatus.RUNNING, only_from=(JobStatus.PAUSED,))

    def cancel(self) -> bool:
        """Stop the run; in-flight output is discarded. No-op once the run has finished."""
        with self._cond:
            if self._job.status in TERMINAL_STATUSES:
                return False
            self._cancel.set()
            self._job.status = JobStatus.CANCELLED
            stream = self._active_stream
            self._cond.notify_all()
        if stream is not None:
            stream.cancel()
        logger.info("Revision run cancelled")
        self._emit()
        return True

    def set_advance_mode(self, mode: AdvanceMode) -> None:
        with self._cond:
            self._job.advance_mode = mode
            paused = self._job.status is JobStatus.PAUSED
            self._cond.notify_all()
        if mode is AdvanceMode.AUTO and paused:
            self.resume()
        else:
            self._emit()

    def reset(self, timeout: Optional[float] = 5.0) -> None:
        """Return a finished run to idle, clearing cursor and error."""
        with self._cond:
            if self._job.status in ACTIVE_STATUSES:
                raise PipelineBusyError("Cannot reset an active run; cancel it first")
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
        with self._cond:
            # A worker still draining keeps its own, already set, cancel token
            self._job = RevisionJob(advance_mode=self._job.advance_mode)
            self._resume_requested = False
            self.live_text = ""
            self._cond.notify_all()
        self._emit()

    # --- Worker ---

    def _run_queue(self, cancel: threading.Event) -> None:
        queue = list(self._job.queue)
        start_time = time.time()

        for i, ref in enumerate(queue):
            with self._cond:
                if cancel.is_set():
                    return
                self._job.cursor = i
            self._emit()

            try:
                rev_path = self._process(ref, cancel)
            except RevisionCancelled:
                logger.info(f"Cancelled while revising {ref.name}")
                return
            except Exception as e:
                if cancel.is_set():
                    return
                message = f'Error on "{ref.name}": {e}'
                logger.error(message)
                self._transition(JobStatus.ERROR, error=message, only_from=(JobStatus.RUNNING,))
                return

            with self._cond:
                if cancel.is_set():
                    return
                self._job.completed_paths.append(rev_path)

            if i < len(queue) - 1 and not self._wait_between_documents(cancel):
                return

        elapsed = time.time() - start_time
        logger.info(f"Revised {len(queue)} documents in {elapsed:.1f}s")
        self._transition(JobStatus.COMPLETE, only_from=(JobStatus.RUNNING,))

    def _wait_between_documents(self, cancel: threading.Event) -> bool:
        """Pause for review when advancing manually. False if the run was cancelled."""
        with self._cond:
            if cancel.is_set():
                return False
            if self._job.advance_mode is not AdvanceMode.PAUSE:
                return True
            self._resume_requested = False
            self._job.status = JobStatus.PAUSED
            self._cond.notify_all()
        self._emit()

        with self._cond:
            self._cond.wait_for(lambda: self._resume_requested or cancel.is_set()
                                or self._job.advance_mode is AdvanceMode.AUTO)
            self._resume_requested = False
            if cancel.is_set():
                return False
        self._transition(JobStatus.RUNNING, only_from=(JobStatus.PAUSED, JobStatus.RUNNING))
        return True

    def _guidance_for(self, content: str, ref: DocumentRef) -> RevisionGuidance:
        if self._guidance_kind is GuidanceKind.CUSTOM:
            return build_guidance(None, GuidanceKind.CUSTOM, self._custom_text)
        record = match_record(content, ref.name, self.analysis.records)
        if record is None:
            logger.info(f"No analysis record for {ref.name}")
            return build_guidance(None, self._guidance_kind)
        return build_guidance(record, self._guidance_kind, items=self.analysis.items_for(record))

    def _reserve_revision(self, folder: str, file_name: str) -> str:
        """Create the empty revision file under a number nobody holds yet."""
        rev_name = revision_name_for(self.store, folder, file_name)
        base, _ = split_base_name(file_name)
        taken: List[str] = []
        while not self.store.create(self.store.join(folder, rev_name)):
            logger.warning(f"{rev_name} already exists, trying the next number")
            taken.append(rev_name)
            rev_name = next_revision_name(taken, base)
        return rev_name

    def _process(self, ref: DocumentRef, cancel: threading.Event) -> str:
        """Revise one document; returns the path of the saved revision."""
        logger.info(f"Revising {ref.name}")
        content = self.store.read(ref.path)
        guidance = self._guidance_for(content, ref)

        folder = self.store.parent(ref.path)
        rev_name = self._reserve_revision(folder, ref.name)
        rev_path = self.store.join(folder, rev_name)

        self.session.open_document(ref.path, ref.name, content)
        self.session.open_document(rev_path, rev_name, "")
        self.session.set_dual_view(ref.path, rev_path)

        messages = build_messages(guidance.rendered_brief, content, self.config.genre, self.config.subgenre)
        options = CompletionOptions(
            max_tokens=max(self.config.llm.max_tokens, self.config.revision_max_tokens),
            temperature=self.config.llm.temperature,
        )
        stream = self.streamer.stream(messages, options)
        with self._cond:
            if cancel.is_set():
                raise RevisionCancelled()
            self._active_stream = stream
            self.live_text = ""

        try:
            for chunk in stream:
                with self._cond:
                    if cancel.is_set():
                        raise RevisionCancelled()
                    self.live_text += chunk
                    text = self.live_text
                self.session.update_content(rev_path, text)
        finally:
            with self._cond:
                self._active_stream = None

        with self._cond:
            if cancel.is_set():
                raise RevisionCancelled()
        self.session.save(rev_path)
        logger.info(f"Saved {rev_name} ({len(self.live_text)} chars)")
        return rev_path
