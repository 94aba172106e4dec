import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional

from solver.solver import count_solutions
from solver.types import InputGrid, ProgressState


logger = logging.getLogger(__name__)

FINISHED_STATUSES = {"completed", "canceled", "failed"}


class CountJobNotFoundError(KeyError):
    pass


class CountJobRegistry:
    """Runs solution counts on daemon threads so callers can poll or cancel them."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._jobs: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def start(
        self,
        grid: Optional[InputGrid],
        mode: str = "exact",
        max_seconds: Optional[float] = 2.0,
        limit: Optional[int] = 2,
        sample_paths: int = 300,
    ) -> dict[str, Any]:
        job_id = str(uuid.uuid4())
        job: dict[str, Any] = {
            "job_id": job_id,
            "status": "queued",
            "mode_requested": mode,
            "options": {"mode": mode, "max_seconds": max_seconds, "limit": limit, "sample_paths": sample_paths},
            "grid": grid,
            "started_at": None,
            "completed_at": None,
            "result": None,
            "lower_bound": 0,
            "nodes_visited": 0,
            "error": None,
            "cancel_event": threading.Event(),
        }
        thread = threading.Thread(target=self._run, args=(job_id,), daemon=True)
        job["thread"] = thread

        with self._lock:
            self._jobs[job_id] = job
        thread.start()
        logger.info("count job %s queued (mode=%s, limit=%s)", job_id, mode, limit)
        return {"job_id": job_id, "status": "queued"}

    def status(self, job_id: str) -> dict[str, Any]:
        with self._lock:
            return self._describe(self._require(job_id))

    def cancel(self, job_id: str) -> dict[str, Any]:
        with self._lock:
            job = self._require(job_id)
            if job["status"] not in FINISHED_STATUSES:
                job["cancel_event"].set()
                if job["status"] == "queued":
                    job["status"] = "canceled"
                    job["completed_at"] = self._clock()
                else:
                    job["status"] = "canceling"
            return self._describe(job)

    def wait(self, job_id: str, timeout: Optional[float] = None) -> dict[str, Any]:
        with self._lock:
            thread = self._require(job_id)["thread"]
        thread.join(timeout)
        return self.status(job_id)

    def _require(self, job_id: str) -> dict[str, Any]:
        job = self._jobs.get(job_id)
        if job is None:
            raise CountJobNotFoundError(job_id)
        return job

    def _run(self, job_id: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            if job["status"] == "canceled":
                return
            job["status"] = "running"
            job["started_at"] = self._clock()
            cancel_event: threading.Event = job["cancel_event"]

        def on_progress(progress: ProgressState) -> None:
            with self._lock:
                job["lower_bound"] = progress.get("solutions_found", job["lower_bound"])
                job["nodes_visited"] = max(job["nodes_visited"], progress.get("nodes_visited", 0))

        try:
            result = count_solutions(
                job["grid"],
                stop_requested=cancel_event.is_set,
                progress_callback=on_progress,
                **job["options"],
            )
        except ValueError as exc:
            self._fail(job, str(exc))
            return
        except Exception as exc:  # pragma: no cover
            logger.exception("count job %s failed", job_id)
            self._fail(job, f"unexpected error: {exc}")
            return

        with self._lock:
            job["completed_at"] = self._clock()
            if cancel_event.is_set():
                job["status"] = "canceled"
                result.update(
                    exact=False,
                    count=None,
                    lower_bound=job["lower_bound"],
                    message="Count canceled. Returning latest lower bound.",
                )
            else:
                job["status"] = "completed"
                found = result.get("lower_bound", result.get("count"))
                if found is not None:
                    job["lower_bound"] = int(found)
            job["result"] = result
        logger.info("count job %s %s", job_id, job["status"])

    def _fail(self, job: dict[str, Any], error: str) -> None:
        with self._lock:
            job["status"] = "failed"
            job["error"] = error
            job["completed_at"] = self._clock()

    def _describe(self, job: dict[str, Any]) -> dict[str, Any]:
        if job["started_at"] is None:
            elapsed_seconds = 0.0
        else:
            end = job["completed_at"] if job["completed_at"] is not None else self._clock()
            elapsed_seconds = end - job["started_at"]

        result = job["result"] or {}
        lower_bound = result.get("lower_bound")
        if lower_bound is None:
            lower_bound = job["lower_bound"]

        return {
            "job_id": job["job_id"],
            "status": job["status"],
            "elapsed_seconds": elapsed_seconds,
            "mode_requested": job["mode_requested"],
            "nodes_visited": job["nodes_visited"],
            "exact": result.get("exact"),
            "count": result.get("count"),
            "lower_bound": lower_bound,
            "estimated_count": result.get("estimated_count"),
            "relative_error": result.get("relative_error"),
            "unique": result.get("unique"),
            "message": result.get("message"),
            "error": job["error"],
        }
