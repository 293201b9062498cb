"""
JSON HTTP API for Resume Manager.

Serves the resume document to UI collaborators and to the MCP proxy:
- /api/data: the whole document (GET, POST replaces it)
- /api/<collection>[/<id>]: record CRUD, search (?q=) and tag filter (?tag=)
- /api/profile: the profile singleton
- /api/tags, /api/stats: tag list and dashboard counts
- /api/export, /api/import, /api/import/preview: whole-document transfer
- /api/mcp: JSON-RPC 2.0 tool dispatcher

Errors are returned as {"error": "<message>"} with 400, 404 or 500.

Safety:
- Host binding: refuses non-localhost addresses unless explicitly allowed
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, Response, jsonify, request

from . import __version__
from .durations import document_stats
from .errors import StorageError, UnknownCollectionError, ValidationError
from .models import COLLECTIONS, Document
from .records import RecordRepository
from .store import DocumentStore
from .tools import handle_request, parse_error
from .transfer import (
    MODE_OVERRIDE,
    export_document,
    export_filename,
    import_document,
    preview_import,
)

logger = logging.getLogger(__name__)

MCP_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def is_localhost(host: str) -> bool:
    """
    Check if a host string represents localhost.

    Args:
        host: Host string to check.

    Returns:
        True if host is localhost (127.x.x.x, ::1 or "localhost"), False otherwise.
    """
    if host == "localhost":
        return True
    if host.startswith("127."):
        return True
    if host == "::1":
        return True
    return False


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def create_app(
    store: Optional[DocumentStore] = None,
    data_path: Optional[Path] = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        store: Document store to serve. Built from ``data_path`` if None.
        data_path: Backing JSON file, used only when ``store`` is None.

    Returns:
        Configured Flask application.
    """
    if store is None:
        if data_path is None:
            raise ValueError("create_app needs a store or a data_path")
        store = DocumentStore.from_path(data_path)

    app = Flask(__name__)
    app.json.sort_keys = False
    app.config["DATA_SOURCE"] = store.backend.describe()
    repository = RecordRepository(store)
    app.extensions["resume_manager"] = repository

    @app.errorhandler(UnknownCollectionError)
    def unknown_collection(e: UnknownCollectionError):
        return _error(e.message, 404)

    @app.errorhandler(ValidationError)
    def invalid_input(e: ValidationError):
        return _error(e.message, 400)

    @app.errorhandler(StorageError)
    def storage_failure(e: StorageError):
        logger.error(f"Storage failure on {request.method} {request.path}: {e.message}")
        return _error(e.message, 500)

    @app.after_request
    def mcp_cors(response: Response) -> Response:
        if request.path == "/api/mcp":
            response.headers.update(MCP_CORS_HEADERS)
        return response

    # =========================================================================
    # WHOLE DOCUMENT
    # =========================================================================

    @app.route("/api/data", methods=["GET"])
    def get_data():
        return jsonify(store.document.to_dict())

    @app.route("/api/data", methods=["POST"])
    def replace_data():
        document = Document.from_dict(_json_body())
        store.save(document)
        logger.info("Document replaced via /api/data")
        return jsonify({"success": True})

    @app.route("/api/tags")
    def list_tags():
        collection = request.args.get("collection") or None
        return jsonify(repository.all_tags(collection))

    @app.route("/api/stats")
    def stats():
        return jsonify(document_stats(store.document))

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    @app.route("/api/export")
    def export():
        filename = export_filename()
        return Response(
            export_document(store),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.route("/api/import", methods=["POST"])
    def import_data():
        mode = request.args.get("mode", MODE_OVERRIDE)
        result = import_document(store, request.get_data(as_text=True), mode)
        return jsonify(result.to_dict()), 200 if result.success else 400

    @app.route("/api/import/preview", methods=["POST"])
    def import_preview():
        return jsonify(preview_import(store, request.get_data(as_text=True)).to_dict())

    # =========================================================================
    # PROFILE
    # =========================================================================

    @app.route("/api/profile", methods=["GET"])
    def get_profile():
        profile = repository.get_profile()
        return jsonify(profile.to_dict() if profile else None)

    @app.route("/api/profile", methods=["POST"])
    def create_profile():
        profile = repository.set_profile(_json_body())
        return jsonify(profile.to_dict()), 201

    @app.route("/api/profile", methods=["PATCH"])
    def update_profile():
        profile = repository.update_profile(_json_body())
        if profile is None:
            return _error("Profile not found", 404)
        return jsonify(profile.to_dict())

    @app.route("/api/profile", methods=["DELETE"])
    def delete_profile():
        repository.delete_profile()
        return jsonify({"success": True})

    # =========================================================================
    # MCP
    # =========================================================================

    @app.route("/api/mcp", methods=["POST"])
    def mcp():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify(parse_error()), 400
        return jsonify(handle_request(repository, body))

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    @app.route("/api/<collection>", methods=["GET"])
    def list_records(collection: str):
        query = request.args.get("q", "")
        tags: List[str] = [tag for tag in request.args.getlist("tag") if tag]
        items = repository.search(collection, query)
        if tags:
            tagged = {item.id for item in repository.filter_by_tags(collection, tags)}
            items = [item for item in items if item.id in tagged]
        return jsonify([item.to_dict() for item in items])

    @app.route("/api/<collection>", methods=["POST"])
    def create_record(collection: str):
        record = repository.create(collection, _json_body())
        return jsonify(record.to_dict()), 201

    @app.route("/api/<collection>/<record_id>", methods=["GET"])
    def get_record(collection: str, record_id: str):
        record = repository.get_by_id(collection, record_id)
        if record is None:
            return _error(f"{collection} item {record_id} not found", 404)
        return jsonify(record.to_dict())

    @app.route("/api/<collection>/<record_id>", methods=["PUT", "PATCH"])
    def update_record(collection: str, record_id: str):
        record = repository.update(collection, record_id, _json_body())
        if record is None:
            return _error(f"{collection} item {record_id} not found", 404)
        return jsonify(record.to_dict())

    @app.route("/api/<collection>/<record_id>", methods=["DELETE"])
    def delete_record(collection: str, record_id: str):
        if not repository.delete(collection, record_id):
            return _error(f"{collection} item {record_id} not found", 404)
        return jsonify({"success": True})

    @app.route("/")
    def index():
        return jsonify({
            "name": "resume-manager",
            "version": __version__,
            "collections": list(COLLECTIONS),
            "dataSource": app.config["DATA_SOURCE"],
        })

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 3000,
    debug: bool = False,
    data_path: Optional[Path] = None,
    allow_unsafe_bind: bool = False,
) -> None:
    """
    Run the web server.

    Args:
        host: Host to bind to. Defaults to 127.0.0.1 (localhost only).
        port: Port to listen on.
        debug: Enable Flask debug mode.
        data_path: Path to the backing JSON file.
        allow_unsafe_bind: If True, allow binding to non-localhost addresses.

    Raises:
        SystemExit: When asked to bind to a non-localhost address without
            ``allow_unsafe_bind``.
    """
    if not is_localhost(host) and not allow_unsafe_bind:
        print("\n" + "=" * 70)
        print("WARNING: BINDING TO NON-LOCALHOST ADDRESS")
        print("=" * 70)
        print(f"   You are binding to '{host}' which may expose your resume data")
        print("   to other machines on your network. The API has no authentication.")
        print()
        print("   To proceed anyway, use: --allow-remote")
        print("=" * 70 + "\n")
        raise SystemExit(1)

    app = create_app(data_path=data_path)
    logger.info(f"Starting Resume Manager API at http://{host}:{port}")
    print(f"\nResume Manager API running at http://{host}:{port}")
    print(f"   Data file: {data_path}")
    print("   Press Ctrl+C to stop\n")
    app.run(host=host, port=port, debug=debug)
