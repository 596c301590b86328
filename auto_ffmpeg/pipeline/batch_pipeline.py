import concurrent.futures
import threading
import traceback
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional

from loguru import logger

from ..config.common import WORKER_THREAD_PREFIX
from ..domain.exceptions import OutputDirectoryError
from ..domain.models import BatchResult, Configuration, JobOutcome
from ..services.discovery import discover_jobs
from ..services.logging_service import ErrorLog
from ..services.media_prober import MediaProber
from ..services.output_resolver import OutputResolver
from ..services.progress_store import ProgressStore
from ..services.transcode import Transcoder
from ..utils.process import ProcessExecutor


class WorkerPool:
    """
    Drains a fully populated FIFO of jobs with `config.count` worker threads.

    Every worker loops on "lock, pop the front job or exit if the queue is
    empty, unlock, process". The pop removes the job before the lock is
    released, so each job is processed by exactly one worker. Jobs are taken
    in discovery order; the order in which they finish is unspecified.
    """

    def __init__(
        self,
        config: Configuration,
        jobs: List[Path],
        resolver: OutputResolver,
        transcoder: Transcoder,
        prober: MediaProber,
        progress: ProgressStore,
        error_log: Optional[ErrorLog] = None,
    ):
        self.config = config
        self.resolver = resolver
        self.transcoder = transcoder
        self.prober = prober
        self.progress = progress
        self.error_log = error_log
        self.result = BatchResult()
        self._queue: Deque[Path] = deque(jobs)
        self._queue_lock = threading.Lock()
        self._result_lock = threading.Lock()

    def _next_job(self) -> Optional[Path]:
        with self._queue_lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    def _finish(self, path: Path, outcome: JobOutcome) -> JobOutcome:
        with self._result_lock:
            self.result.outcomes[path] = outcome
        return outcome

    def process_job(self, path: Path) -> JobOutcome:
        """
        Runs one job to its terminal state.

        Already-recorded files are skipped when resuming; files failing the
        probe-match filter are skipped. Otherwise the encoder runs, and with
        resume enabled the file is recorded once the encoder has returned,
        whatever its exit status.
        """
        if self.config.resume and self.progress.contains(path):
            logger.info(f"Skipping {path.name}: already converted.")
            return JobOutcome.SKIPPED_RESUME

        if self.config.filter_by_probe and not self.prober.matches(path, self.config.probe_matches):
            logger.info(f"Skipping {path.name}: probe-match filter did not pass.")
            return JobOutcome.SKIPPED_FILTER

        out_dir = self.resolver.resolve(path)
        returncode = self.transcoder.transcode(path, out_dir)
        logger.debug(f"Encoder for {path.name} returned {returncode}")

        if self.config.resume:
            self.progress.record(path)
        return JobOutcome.CONVERTED

    def _report_failure(self, path: Path, exc: Exception):
        if isinstance(exc, OutputDirectoryError):
            logger.error(f"Giving up on {path.name}: {exc}")
            details = str(exc)
        else:
            tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            logger.error(
                f"Unhandled error while processing {path.name}\n"
                f"Exception type: {type(exc).__name__}\n"
                f"Exception message: {exc}\n"
                f"Traceback:\n{tb_str}"
            )
            details = f"{type(exc).__name__}: {exc}"
        if self.error_log:
            self.error_log.write(f"Job failed: {path}", details)

    def _worker(self) -> int:
        name = threading.current_thread().name
        handled = 0
        logger.debug(f"{name} started")
        while True:
            path = self._next_job()
            if path is None:
                break
            try:
                outcome = self.process_job(path)
            except Exception as e:  # One broken job must not stop the worker.
                outcome = JobOutcome.FAILED
                try:
                    self._report_failure(path, e)
                except Exception as report_exc:
                    logger.opt(exception=report_exc).error(f"Could not report the failure of {path!r}")
            self._finish(path, outcome)
            handled += 1
        logger.debug(f"{name} found the queue empty after {handled} job(s)")
        return handled

    def run(self) -> BatchResult:
        """Starts the workers, waits for all of them to exit, and returns the outcomes."""
        pending = len(self._queue)
        logger.info(f"Processing {pending} job(s) with {self.config.count} worker(s).")
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.count, thread_name_prefix=WORKER_THREAD_PREFIX
        ) as executor:
            futures = [executor.submit(self._worker) for _ in range(self.config.count)]
            for future in concurrent.futures.as_completed(futures):
                future.result()
        logger.info(f"Finished processing all jobs: {self.result.summary()}")
        return self.result


class BatchController:
    """
    Wires discovery, the resolver, the prober, the progress store and the pool
    for one invocation.

    The controller owns the shared objects of a run (resolver cache, progress
    store, error log) and hands them to the workers, so two runs in one
    process never share state.
    """

    def __init__(
        self,
        config: Configuration,
        executor: Optional[ProcessExecutor] = None,
        prober: Optional[MediaProber] = None,
    ):
        self.config = config
        self.transcoder = Transcoder(config, executor)
        self.prober = prober or MediaProber(config.ffprobe_bin)
        self.progress = ProgressStore.in_dir(config.base_dir)
        self.error_log = ErrorLog(config.base_dir)

    def run(self, target: Optional[Path] = None) -> Optional[BatchResult]:
        """
        Processes `target`: the base directory when None, a batch for a
        directory, or a single background conversion for a file.

        Returns:
            The batch outcomes, or None for a single-file conversion.

        Raises:
            FileNotFoundError: If `target` does not exist.
        """
        if target is None:
            return self.run_directory(self.config.base_dir)
        if target.is_dir():
            return self.run_directory(target)
        if target.is_file():
            self.run_single_file(target)
            return None
        raise FileNotFoundError(f"No such file or directory: {target}")

    def run_directory(self, root: Path) -> BatchResult:
        root = root.resolve()
        logger.info(f"Batch converting {root}")
        jobs = discover_jobs(root, self.config)
        if self.config.resume:
            self.progress.load()
        pool = WorkerPool(
            self.config,
            jobs,
            resolver=OutputResolver(self.config, scan_root=root),
            transcoder=self.transcoder,
            prober=self.prober,
            progress=self.progress,
            error_log=self.error_log,
        )
        return pool.run()

    def run_single_file(self, path: Path) -> None:
        """Starts the encoder for `path` without waiting, filters and progress aside."""
        path = path.resolve()
        resolver = OutputResolver(self.config, scan_root=path.parent)
        out_dir = resolver.resolve(path)
        self.transcoder.transcode_detached(path, out_dir)
