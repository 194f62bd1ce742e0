"""HTTP endpoints for ClipStream."""

import logging
import time
import uuid
from dataclasses import asdict

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.utils import secure_filename

from clipstream import ffutil
from clipstream.edits import parse_edits, parse_trim
from clipstream.editors.filters import audio_tempo, build_filters
from clipstream.errors import InputMissingError
from clipstream.fetcher import RetrievalFetcher
from clipstream.scratch import ScratchFile, ScratchWorkspace
from clipstream.supervisor import TranscodeSupervisor

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)


def _workspace() -> ScratchWorkspace:
    return current_app.extensions["clipstream"]["workspace"]


def _fetcher() -> RetrievalFetcher:
    return current_app.extensions["clipstream"]["fetcher"]


def _request_id() -> str:
    return uuid.uuid4().hex[:12]


def _require_upload(field: str = "video"):
    f = request.files.get(field)
    if f is None or not f.filename:
        raise InputMissingError(f"Field '{field}' is required")
    return f


def _require_arg(name: str) -> str:
    value = request.args.get(name, "").strip()
    if not value:
        raise InputMissingError(f"Query parameter '{name}' is required")
    return value


def _iter_file(scratch: ScratchFile, chunk_size: int):
    try:
        with open(scratch.path, "rb") as fh:
            for chunk in iter(lambda: fh.read(chunk_size), b""):
                yield chunk
    finally:
        scratch.release()


@bp.route("/api/health")
def health():
    binaries = {
        "ffmpeg": current_app.config["FFMPEG_BIN"],
        "ffprobe": current_app.config["FFPROBE_BIN"],
        "yt-dlp": current_app.config["YTDLP_BIN"],
    }
    missing = set(ffutil.missing_tools(*binaries.values()))
    return jsonify({
        "ok": True,
        "scratchRoot": str(_workspace().root),
        "tools": {name: binary not in missing for name, binary in binaries.items()},
    })


@bp.route("/api/fetch-metadata")
def fetch_metadata():
    url = _require_arg("url")
    meta = _fetcher().fetch_metadata(url)
    return jsonify(asdict(meta))


@bp.route("/api/fetch-media")
def fetch_media():
    url = _require_arg("url")
    format_id = _require_arg("format_id")
    rid = _request_id()

    scratch = _fetcher().download(url, format_id, owner=rid)
    size = scratch.path.stat().st_size
    filename = secure_filename(f"media_{format_id}_{int(time.time() * 1000)}.mp4")

    response = Response(
        _iter_file(scratch, current_app.config["STREAM_CHUNK_SIZE"]),
        mimetype="video/mp4",
    )
    response.headers["Content-Length"] = str(size)
    response.headers["Accept-Ranges"] = "bytes"
    response.headers["X-File-Name"] = filename
    response.call_on_close(scratch.release)
    return response


@bp.route("/api/get-video-duration", methods=["POST"])
def get_video_duration():
    upload = _require_upload()
    scratch = _workspace().save_upload(upload, owner=_request_id())
    duration = ffutil.probe_duration(scratch, ffprobe=current_app.config["FFPROBE_BIN"])
    return jsonify({"duration": duration})


@bp.route("/api/export-clip", methods=["POST"])
def export_clip():
    upload = _require_upload()
    edits_json = request.form.get("editsJson")
    clip_json = request.form.get("clipJson")
    if not edits_json or not clip_json:
        raise InputMissingError("Fields 'editsJson' and 'clipJson' are required")

    # Validate everything before touching the workspace
    edits = parse_edits(edits_json)
    trim = parse_trim(clip_json)

    rid = _request_id()
    scratch = _workspace().save_upload(upload, owner=rid)
    cmd = ffutil.export_command(
        scratch.path,
        trim,
        build_filters(edits),
        audio_tempo(edits),
        ffmpeg=current_app.config["FFMPEG_BIN"],
    )
    supervisor = TranscodeSupervisor(
        cmd,
        scratch,
        chunk_size=current_app.config["STREAM_CHUNK_SIZE"],
        stderr_limit=current_app.config["STDERR_TAIL_BYTES"],
        detail_chars=current_app.config["ERROR_DETAIL_CHARS"],
    )
    logger.info(
        "[%s] exporting %.3fs-%.3fs from %r", rid, trim.start_sec, trim.end_sec, upload.filename
    )

    try:
        first = supervisor.prime()
    except Exception:
        supervisor.cancel()
        raise

    response = Response(supervisor.stream(first), mimetype="video/mp4")
    response.headers["X-File-Name"] = f"clip_{int(time.time() * 1000)}.mp4"
    response.call_on_close(supervisor.cancel)
    return response
