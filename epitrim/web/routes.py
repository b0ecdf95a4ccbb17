"""Web API routes for epitrim.

Each uploaded episode gets its own job directory, which is the temp dir the
pipeline stages run in.
"""

import json
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from flask import Blueprint, Response, abort, current_app, jsonify, request, send_file

from epitrim.engine import EngineResult, process
from epitrim.errors import PostProcessError
from epitrim.manifest import CleanConfig, Manifest, MergeConfig, TrimConfig
from epitrim.staging import EPISODE, SUBTITLES

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# Seconds the progress stream waits for the next stage update
PROGRESS_IDLE_TIMEOUT = 120


@dataclass
class Job:
    dir: Path
    filename: str
    status: str = "uploaded"
    error: str | None = None
    result: dict | None = None
    updates: queue.Queue | None = field(default=None, repr=False)

    @property
    def has_subtitles(self) -> bool:
        # merge_subtitles deletes the file once it is in the container
        return (self.dir / SUBTITLES).exists()

    def summary(self) -> dict:
        out = {
            "status": self.status,
            "filename": self.filename,
            "has_subtitles": self.has_subtitles,
        }
        if self.status == "done":
            out["result"] = self.result
        elif self.status == "error":
            out["error"] = self.error
        return out


_jobs: dict[str, Job] = {}


def _job(job_id: str) -> Job:
    job = _jobs.get(job_id)
    if job is None:
        abort(404, description="Job not found")
    return job


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _saved_file():
    f = request.files.get("file")
    if f is None:
        abort(_error("No file provided", 400))
    if not f.filename:
        abort(_error("Empty filename", 400))
    return f


@bp.route("/api/upload", methods=["POST"])
def upload():
    f = _saved_file()

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)
    f.save(job_dir / EPISODE)
    _jobs[job_id] = Job(dir=job_dir, filename=f.filename)

    logger.info("Job %s: received %s", job_id, f.filename)
    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/subtitles", methods=["POST"])
def upload_subtitles(job_id: str):
    job = _job(job_id)
    if job.status == "processing":
        return _error("Job is already processing", 409)

    _saved_file().save(job.dir / SUBTITLES)
    return jsonify({"job_id": job_id, "subtitles": SUBTITLES})


def _section(config: dict, name: str) -> dict:
    section = config.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be an object")
    return section


def _manifest_for(job: Job, config: dict) -> Manifest:
    if not isinstance(config, dict):
        raise ValueError("job config must be a JSON object")
    tc = _section(config, "trim")
    mc = _section(config, "merge")
    cc = _section(config, "clean")

    return Manifest(
        temp_dir=job.dir,
        engine_dir=current_app.config.get("ENGINE_DIR"),
        trim=TrimConfig(
            enabled=bool(tc.get("enabled", True)),
            ad_length_ms=int(tc.get("ad_length_ms", 0)),
            est_keyframe_ms=int(tc.get("est_keyframe_ms", 0)),
            crf=int(tc.get("crf", 5)),
        ),
        merge=MergeConfig(
            enabled=bool(mc.get("enabled", True)),
            audio_lang=str(mc.get("audio_lang", "jpn")),
            # Without a subtitle file on disk only the audio tag is applied
            subtitle_lang=str(mc.get("subtitle_lang", "")) if job.has_subtitles else "",
        ),
        clean=CleanConfig(enabled=bool(cc.get("enabled", True))),
    )


def _result_dict(result: EngineResult) -> dict:
    return {
        "output_path": str(result.output_path),
        "duration_original_ms": result.duration_original_ms,
        "duration_final_ms": result.duration_final_ms,
        "key_frame_gap_ms": result.key_frame_gap_ms,
        "stages": result.stages,
    }


def _run_job(job_id: str, job: Job, manifest: Manifest) -> None:
    updates = job.updates
    try:
        result = process(
            manifest,
            on_progress=lambda stage, frac: updates.put({"stage": stage, "progress": round(frac, 3)}),
        )
    except PostProcessError as e:
        job.status, job.error = "error", str(e)
        logger.warning("Job %s failed: %s", job_id, e)
    except Exception as e:
        job.status, job.error = "error", f"Unexpected failure: {e}"
        logger.exception("Job %s crashed", job_id)
    else:
        job.status, job.result = "done", _result_dict(result)
        logger.info("Job %s finished: %s", job_id, ", ".join(result.stages))
    finally:
        updates.put(None)


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    job = _job(job_id)
    if job.status == "processing":
        return _error("Job is already processing", 409)

    config = request.get_json(silent=True)
    try:
        manifest = _manifest_for(job, {} if config is None else config)
    except (TypeError, ValueError) as e:
        return _error(f"Invalid job config: {e}", 400)

    job.updates = queue.Queue()
    job.status, job.error, job.result = "processing", None, None
    threading.Thread(target=_run_job, args=(job_id, job, manifest), daemon=True).start()
    return jsonify({"status": "started"})


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def _stream_updates(job: Job):
    while True:
        try:
            update = job.updates.get(timeout=PROGRESS_IDLE_TIMEOUT)
        except queue.Empty:
            yield _sse({"error": f"No progress for {PROGRESS_IDLE_TIMEOUT}s"})
            return
        if update is None:
            yield _sse({"stage": "complete", **job.summary()})
            return
        yield _sse(update)


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _job(job_id)
    if job.updates is None:
        return _error("Job has not been started", 409)
    return Response(_stream_updates(job), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    job = _job(job_id)
    if job.status != "done":
        return _error(f"Job is {job.status}, not done", 409)
    return send_file(job.result["output_path"], as_attachment=True, download_name=job.filename)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    return jsonify(_job(job_id).summary())
