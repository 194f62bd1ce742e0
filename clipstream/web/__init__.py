"""Flask application factory for the ClipStream API."""

import logging
from collections.abc import Mapping
from pathlib import Path

from flask import Flask, jsonify
from flask_cors import CORS

from clipstream.config import DefaultConfig
from clipstream.errors import ClipStreamError
from clipstream.fetcher import RetrievalFetcher
from clipstream.scratch import ScratchWorkspace

logger = logging.getLogger(__name__)


def create_app(scratch_root: Path | None = None, config: Mapping | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(DefaultConfig)
    app.config.from_prefixed_env("CLIPSTREAM")
    if config:
        app.config.update(config)
    if scratch_root is not None:
        app.config["SCRATCH_ROOT"] = str(scratch_root)

    workspace = ScratchWorkspace(Path(app.config["SCRATCH_ROOT"]))
    workspace.ensure()
    app.extensions["clipstream"] = {
        "workspace": workspace,
        "fetcher": RetrievalFetcher(
            workspace,
            ytdlp=app.config["YTDLP_BIN"],
            metadata_timeout=app.config["METADATA_TIMEOUT"],
            download_timeout=app.config["DOWNLOAD_TIMEOUT"],
            transcript_language=app.config["TRANSCRIPT_LANGUAGE"],
            description_limit=app.config["DESCRIPTION_LIMIT"],
        ),
    }
    logger.info("Scratch root: %s", workspace.root)

    CORS(app, origins=app.config["CORS_ORIGINS"], expose_headers=["X-File-Name"])

    from clipstream.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(ClipStreamError)
    def clipstream_error(error: ClipStreamError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
