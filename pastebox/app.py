"""Flask HTTP server for the paste service.

This module maps HTTP routes onto PasteStore operations and its errors onto
status codes.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from flask import Flask, Response, jsonify, redirect, request

from pastebox.config import Config
from pastebox.paste_store import (
    AuthorizationError,
    InvalidPasteError,
    InvalidURLError,
    PasteStore,
)
from pastebox.renderer import Renderer
from pastebox.validation import extract_url

# Configure logging
logger = logging.getLogger(__name__)

# Maximum paste size: 1MB
MAX_PASTE_SIZE = 1024 * 1024  # 1MB in bytes


def _text(message: str, status: int) -> Response:
    return Response(f"{message}\n", status=status, mimetype="text/plain")


def _error_response(error: Exception) -> Response:
    """Map a paste store exception to an HTTP response."""
    if isinstance(error, InvalidPasteError):
        return _text("Not Found", 404)
    if isinstance(error, InvalidURLError):
        return _text("Bad Request: Invalid URL", 400)
    if isinstance(error, AuthorizationError):
        return _text("Forbidden: Invalid delete key", 403)
    logger.error(f"Unexpected error: {error}")
    return _text("Internal Server Error", 500)


def _wants_json() -> bool:
    best = request.accept_mimetypes.best_match(["text/html", "application/json"])
    return best == "application/json"


def create_app(
    config: Config, store: PasteStore, renderer: Optional[Renderer] = None
) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Configuration instance
        store: Paste store handling saves, reads and deletes
        renderer: Renderer for HTML pages (default links home to config.address)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    if renderer is None:
        renderer = Renderer(home=config.address + "/")

    def load(paste_id: str):
        try:
            return store.get(paste_id), None
        except InvalidPasteError as e:
            logger.info(f"Paste not found: {paste_id}")
            return None, _error_response(e)
        except Exception as e:
            logger.exception(f"Unexpected error retrieving {paste_id}: {e}")
            return None, _error_response(e)

    @app.route("/", methods=["GET"])
    def index():
        """GET / - Upload form."""
        content, content_type = renderer.render_index()
        return Response(content, status=200, mimetype=content_type)

    @app.route("/", methods=["POST"])
    def save_paste():
        """Handle paste upload requests.

        POST / - Form fields p (content), expiry (ISO 8601 duration), lang

        Returns:
            303: Redirect to the paste (JSON body instead if requested)
            400: Content is not a URL although lang is "url"
            413: Payload too large
            500: Internal server error
        """
        content_length = request.content_length
        if content_length and content_length > MAX_PASTE_SIZE:
            logger.warning(f"Paste too large from {request.remote_addr}: {content_length} bytes")
            return _text(
                f"Payload Too Large: Maximum paste size is {MAX_PASTE_SIZE} bytes (1MB)",
                413,
            )

        paste = request.form.get("p", "")
        expiry = request.form.get("expiry", "")
        lang = request.form.get("lang", "")

        # Empty paste, go back
        if paste == "":
            return index()

        try:
            result = store.save(paste, expiry, lang)
        except Exception as e:
            if not isinstance(e, InvalidURLError):
                logger.exception(f"Failed to save paste from {request.remote_addr}: {e}")
            return _error_response(e)

        if _wants_json():
            return jsonify(result.to_dict())
        return redirect(result.url, code=303)

    @app.route("/<paste_id>", methods=["GET"])
    def view_paste(paste_id: str):
        """GET /<id> - Paste page; "url" pastes redirect to their target."""
        found, error = load(paste_id)
        if error is not None:
            return error
        content, lang = found

        if lang == "url":
            referer = request.headers.get("Referer")
            # Links followed from our own pages show the paste instead
            if not referer or urlsplit(referer).netloc != request.host:
                target = extract_url(content)
                if target is not None:
                    return redirect(target, code=301)

        html_content, content_type = renderer.render_paste(paste_id, content, lang)
        return Response(html_content, status=200, mimetype=content_type)

    @app.route("/<paste_id>/raw", methods=["GET"])
    def raw_paste(paste_id: str):
        """GET /<id>/raw - Paste content as plain text."""
        found, error = load(paste_id)
        if error is not None:
            return error
        content, _ = found
        return Response(content, status=200, mimetype="text/plain")

    @app.route("/<paste_id>/download", methods=["GET"])
    def download_paste(paste_id: str):
        """GET /<id>/download - Paste content as an attachment."""
        found, error = load(paste_id)
        if error is not None:
            return error
        content, _ = found
        response = Response(content, status=200, mimetype="text/plain")
        response.headers["Content-Disposition"] = f"attachment; filename={paste_id}"
        return response

    @app.route("/<paste_id>/clone", methods=["GET"])
    def clone_paste(paste_id: str):
        """GET /<id>/clone - Upload form prefilled with the paste content."""
        found, error = load(paste_id)
        if error is not None:
            return error
        content, _ = found
        html_content, content_type = renderer.render_index(
            title=f"Clone : {paste_id}", body=content
        )
        return Response(html_content, status=200, mimetype=content_type)

    @app.route("/<paste_id>/delete", methods=["POST"])
    def delete_paste(paste_id: str):
        """POST /<id>/delete - Delete a paste using its delkey."""
        delete_key = request.values.get("delkey", "")
        try:
            store.delete(paste_id, delete_key)
        except Exception as e:
            if not isinstance(e, (InvalidPasteError, AuthorizationError)):
                logger.exception(f"Failed to delete paste {paste_id}: {e}")
            return _error_response(e)
        return _text("Deleted", 200)

    return app


def run_server(
    config: Config, store: PasteStore, renderer: Optional[Renderer] = None
) -> None:
    """Run the Flask HTTP server.

    Args:
        config: Configuration instance
        store: Paste store handling saves, reads and deletes
        renderer: Renderer for HTML pages
    """
    app = create_app(config, store, renderer)

    logger.info(f"Starting HTTP server on all interfaces, port {config.listen_port}")
    app.run(host="0.0.0.0", port=config.listen_port, debug=False)  # nosec B104
