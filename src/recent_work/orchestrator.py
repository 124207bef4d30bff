from __future__ import annotations

import dataclasses
import datetime as dt
import logging
import os
import selectors
import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import IO, Union

from .aggregate import finalize_commits
from .commits import parse_log_output
from .git import history_query_args
from .identity import ResolvedAuthorFilter
from .models import Commit, RepositoryResult

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_POLL_INTERVAL_S = 0.01
TERMINATE_GRACE_S = 2.0
MAX_STDERR_BYTES = 50_000
READ_CHUNK = 65536


def since_date_for(days_back: int, today: dt.date | None = None) -> str:
    d = (today or dt.date.today()) - dt.timedelta(days=days_back)
    return d.isoformat()


@dataclasses.dataclass(frozen=True)
class Pending:
    pass


@dataclasses.dataclass(frozen=True)
class RepoOutcome:
    success: bool
    commits: tuple[Commit, ...] = ()
    error: str = ""


OutcomeState = Union[Pending, RepoOutcome]
PENDING = Pending()


@dataclasses.dataclass
class RepoProcessState:
    index: int
    path: str
    proc: subprocess.Popen | None = None
    stdout_chunks: list[bytes] = dataclasses.field(default_factory=list)
    stderr_chunks: list[bytes] = dataclasses.field(default_factory=list)
    stderr_bytes: int = 0
    open_streams: set[str] = dataclasses.field(default_factory=set)
    outcome: OutcomeState = PENDING

    @property
    def pending(self) -> bool:
        return isinstance(self.outcome, Pending)

    def stderr_text(self) -> str:
        return b"".join(self.stderr_chunks).decode("utf-8", errors="replace").strip()


class HistoryOrchestrator:
    """
    Runs one `git log` per repository concurrently and collects the results.

    A batch is driven by a single selector loop: every process gets non-blocking
    stdout/stderr pipes, output is buffered as it arrives and parsed once the
    process has exited. Each repository completes exactly once and its pipes and
    process are released as part of that completion, including when the batch
    deadline expires or `cancel` is set, in which case outstanding processes are
    terminated and the results gathered so far are returned.

    `run_batch` blocks the caller; `submit` runs the same loop on a private
    worker thread and returns a Future.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        git_executable: str = "git",
    ) -> None:
        self.timeout_s = timeout_s
        self.poll_interval_s = poll_interval_s
        self.git_executable = git_executable
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> "HistoryOrchestrator":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            ex, self._executor = self._executor, None
        if ex is not None:
            ex.shutdown(wait=wait)

    def submit(
        self,
        paths: Sequence[str | Path],
        since_date: str,
        max_commits: int,
        author_filter: ResolvedAuthorFilter,
        *,
        callback: Callable[[list[RepositoryResult]], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> "Future[list[RepositoryResult]]":
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="recent-work")
            fut = self._executor.submit(self.run_batch, paths, since_date, max_commits, author_filter, cancel=cancel)

        if callback is not None:

            def _done(f: "Future[list[RepositoryResult]]") -> None:
                if f.cancelled():
                    return
                e = f.exception()
                if e is not None:
                    log.error("history batch failed: %s", e)
                    return
                callback(f.result())

            fut.add_done_callback(_done)
        return fut

    def run_batch(
        self,
        paths: Sequence[str | Path],
        since_date: str,
        max_commits: int,
        author_filter: ResolvedAuthorFilter,
        cancel: threading.Event | None = None,
    ) -> list[RepositoryResult]:
        results: list[RepositoryResult] = []
        if not paths:
            return results

        args = [self.git_executable, *history_query_args(since_date, max_commits)]
        states = [RepoProcessState(index=i, path=str(p)) for i, p in enumerate(paths)]
        sel = selectors.DefaultSelector()
        try:
            for st in states:
                self._spawn(st, args, sel)

            deadline = time.monotonic() + self.timeout_s
            while any(st.pending for st in states):
                if cancel is not None and cancel.is_set():
                    log.info("history batch cancelled with %d repositories outstanding", _count_pending(states))
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    log.warning(
                        "git log timed out after %.1fs; %d repositories skipped",
                        self.timeout_s,
                        _count_pending(states),
                    )
                    break

                wait = min(self.poll_interval_s, remaining)
                if sel.get_map():
                    for key, _mask in sel.select(timeout=wait):
                        st, stream = key.data
                        self._read(st, stream, key.fileobj, sel)
                else:
                    time.sleep(wait)

                for st in states:
                    if st.pending and not st.open_streams and st.proc is not None and st.proc.poll() is not None:
                        self._finish(st, author_filter, results, sel)
        finally:
            self._abort_pending(states, sel)
            sel.close()

        return results

    def _spawn(self, st: RepoProcessState, args: list[str], sel: selectors.BaseSelector) -> None:
        try:
            st.proc = subprocess.Popen(
                args,
                cwd=st.path,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            log.debug("failed to start git log in %s: %s", st.path, e)
            self._complete(st, RepoOutcome(success=False, error=f"failed to start git log: {e}"), sel)
            return

        for name, pipe in (("stdout", st.proc.stdout), ("stderr", st.proc.stderr)):
            if pipe is None:
                continue
            os.set_blocking(pipe.fileno(), False)
            sel.register(pipe, selectors.EVENT_READ, (st, name))
            st.open_streams.add(name)

    def _read(self, st: RepoProcessState, stream: str, pipe: IO[bytes], sel: selectors.BaseSelector) -> None:
        if not st.pending:
            return
        try:
            chunk = os.read(pipe.fileno(), READ_CHUNK)
        except BlockingIOError:
            return
        except OSError as e:
            log.debug("error reading git %s for %s: %s", stream, st.path, e)
            self._complete(st, RepoOutcome(success=False, error=f"{stream} read failed: {e}"), sel)
            return

        if not chunk:
            _close_pipe(pipe, sel)
            st.open_streams.discard(stream)
            return
        if stream == "stdout":
            st.stdout_chunks.append(chunk)
        elif st.stderr_bytes < MAX_STDERR_BYTES:
            take = chunk[: MAX_STDERR_BYTES - st.stderr_bytes]
            st.stderr_chunks.append(take)
            st.stderr_bytes += len(take)

    def _finish(
        self,
        st: RepoProcessState,
        author_filter: ResolvedAuthorFilter,
        results: list[RepositoryResult],
        sel: selectors.BaseSelector,
    ) -> None:
        assert st.proc is not None
        code = st.proc.returncode
        if code != 0:
            err = f"git log exited {code}: {st.stderr_text()[:500]}"
            log.debug("%s: %s", st.path, err)
            self._complete(st, RepoOutcome(success=False, error=err), sel)
            return

        output = b"".join(st.stdout_chunks).decode("utf-8", errors="replace")
        commits = tuple(finalize_commits(parse_log_output(output), author_filter))
        if self._complete(st, RepoOutcome(success=True, commits=commits), sel) and commits:
            results.append(RepositoryResult(path=st.path, commits=commits))

    def _complete(
        self,
        st: RepoProcessState,
        outcome: RepoOutcome,
        sel: selectors.BaseSelector,
        *,
        wait: bool = True,
    ) -> bool:
        """Move `st` out of Pending and release its resources. False if it had already completed."""
        if not st.pending:
            return False
        st.outcome = outcome
        self._release(st, sel, wait=wait)
        st.stdout_chunks.clear()
        return True

    def _release(self, st: RepoProcessState, sel: selectors.BaseSelector, *, wait: bool) -> None:
        """Close both pipes and signal a still-running process; with `wait`, also reap it."""
        proc = st.proc
        if proc is None:
            return
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                _close_pipe(pipe, sel)
        st.open_streams.clear()

        if proc.poll() is None:
            proc.terminate()
            if wait:
                _reap([proc], time.monotonic() + TERMINATE_GRACE_S)

    def _abort_pending(self, states: list[RepoProcessState], sel: selectors.BaseSelector) -> None:
        # Every process is signalled before any of them is waited on.
        stopping: list[subprocess.Popen] = []
        for st in states:
            if self._complete(st, RepoOutcome(success=False, error="terminated"), sel, wait=False) and st.proc is not None:
                stopping.append(st.proc)
        if stopping:
            _reap(stopping, time.monotonic() + TERMINATE_GRACE_S)


def _reap(procs: list[subprocess.Popen], grace_deadline: float) -> None:
    for proc in procs:
        try:
            proc.wait(timeout=max(0.0, grace_deadline - time.monotonic()))
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()


def _close_pipe(pipe: IO[bytes], sel: selectors.BaseSelector) -> None:
    if pipe.closed:
        return
    try:
        sel.unregister(pipe)
    except (KeyError, ValueError):
        pass
    pipe.close()


def _count_pending(states: list[RepoProcessState]) -> int:
    return sum(1 for st in states if st.pending)
