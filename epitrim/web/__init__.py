"""Flask application factory for the epitrim web API.

Settings may also come from ``EPITRIM_*`` environment variables, e.g.
``EPITRIM_ENGINE_DIR=/opt/engine``.
"""

import tempfile
from pathlib import Path

from flask import Flask, jsonify


def create_app(work_dir: Path | None = None, engine_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        WORK_DIR=None,
        ENGINE_DIR=None,
        MAX_CONTENT_LENGTH=10 * 1024 * 1024 * 1024,  # episodes can be large
    )
    app.config.from_prefixed_env("EPITRIM")

    if work_dir is not None:
        app.config["WORK_DIR"] = work_dir
    if engine_dir is not None:
        app.config["ENGINE_DIR"] = engine_dir
    if not app.config["WORK_DIR"]:
        app.config["WORK_DIR"] = tempfile.mkdtemp(prefix="epitrim_")
    app.config["WORK_DIR"] = Path(app.config["WORK_DIR"])
    app.config["ENGINE_DIR"] = Path(app.config["ENGINE_DIR"]) if app.config["ENGINE_DIR"] else None

    from epitrim.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": error.description}), 404

    @app.errorhandler(413)
    def episode_too_large(error):
        return jsonify({"error": "Episode exceeds the upload limit"}), 413

    return app
