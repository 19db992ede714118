from __future__ import annotations

import argparse
import asyncio
import logging
import threading
from pathlib import Path

import websockets
from flask import Flask, jsonify, send_from_directory

from chunkcast.config import ServerConfig
from chunkcast.library import AudioLibrary
from chunkcast.session import Session


logger = logging.getLogger(__name__)
logging.getLogger('werkzeug').disabled = True


def create_app(library: AudioLibrary, static_dir: str | Path) -> Flask:
    """
    Build the HTTP side of the server: web UI, file listing and direct file access

    Args:
        library: the audio files exposed to clients
        static_dir: directory holding `index.html` and the other UI assets

    Returns:
        the Flask application
    """
    static_dir = Path(static_dir)
    app = Flask(
        __name__,
        static_folder=str(static_dir),
        static_url_path="/static",
    )

    @app.after_request
    def allow_cors(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.route("/")
    def index():
        return send_from_directory(str(static_dir), "index.html")

    @app.route("/ping")
    def ping():
        return "pong"

    @app.route("/audios")
    def audios():
        """List the names of the streamable audio files."""
        try:
            return jsonify(library.list_files())
        except OSError as e:
            logger.error("Failed to read audio directory %s: %s", library.root, e)
            return "Failed to read audio directory", 500

    @app.route("/api/audio/list")
    def audio_list():
        """List the audio files with their URL, size and duration."""
        try:
            return jsonify(library.describe())
        except OSError as e:
            logger.error("Failed to read audio directory %s: %s", library.root, e)
            return "Failed to read audio directory", 500

    @app.route(f"{library.url_prefix}/<path:filename>")
    def audio_file(filename):
        return send_from_directory(str(library.root), filename)

    return app


class StreamServer:
    """
    Accepts WebSocket connections and runs one Session per connection.

    Args:
        config: server settings

    Attributes:
        library: the audio files sessions stream from
        sessions: sessions of the currently open connections
    """
    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.library = AudioLibrary(config.resource_dir)
        self.sessions: set[Session] = set()


    async def handler(self, websocket) -> None:
        """Run a Session for the lifetime of a single connection."""
        session = Session(websocket, self.library, self.config)
        self.sessions.add(session)
        logger.debug("%d active connection(s)", len(self.sessions))
        try:
            await session.run()
        finally:
            self.sessions.discard(session)


    async def serve(self) -> None:
        """Serve WebSocket connections until cancelled."""
        async with websockets.serve(self.handler, self.config.host, self.config.ws_port):
            logger.info("Streaming on ws://%s:%d", self.config.host, self.config.ws_port)
            await asyncio.Future()


def _run_http(app: Flask, config: ServerConfig) -> None:
    app.run(host=config.host, port=config.http_port, debug=False, use_reloader=False)


def start_local_server(config: ServerConfig | None = None) -> StreamServer:
    """
    Start the HTTP server and the WebSocket server in background threads.

    Args:
        config: server settings, defaults are used when omitted

    Returns:
        the StreamServer handling WebSocket connections
    """
    config = config or ServerConfig()
    server = StreamServer(config)
    app = create_app(server.library, config.static_dir)

    threading.Thread(target=lambda: asyncio.run(server.serve()), name="chunkcast-ws", daemon=True).start()
    threading.Thread(target=lambda: _run_http(app, config), name="chunkcast-web", daemon=True).start()

    return server


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = ServerConfig()
    parser = argparse.ArgumentParser(description="Stream audio files to WebSocket clients in chunks.")
    parser.add_argument("--host", default=defaults.host, help="Interface to bind both servers to")
    parser.add_argument("--http-port", type=int, default=defaults.http_port, help="Port of the web UI and file listing")
    parser.add_argument("--ws-port", type=int, default=defaults.ws_port, help="Port of the streaming WebSocket")
    parser.add_argument("--resource-dir", default=str(defaults.resource_dir), help="Folder that contains the audio files")
    parser.add_argument("--static-dir", default=str(defaults.static_dir), help="Folder that contains the web UI")
    parser.add_argument("--chunk-size", type=int, default=defaults.chunk_size, help="Bytes per binary frame")
    parser.add_argument("--pacing-delay", type=float, default=defaults.pacing_delay, help="Seconds to wait between chunks")
    parser.add_argument("--send-timeout", type=float, default=defaults.send_timeout, help="Seconds a single frame write may take")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    config = ServerConfig(
        host=args.host,
        http_port=args.http_port,
        ws_port=args.ws_port,
        resource_dir=args.resource_dir,
        static_dir=args.static_dir,
        chunk_size=args.chunk_size,
        pacing_delay=args.pacing_delay,
        send_timeout=args.send_timeout,
    )
    start_local_server(config)
    logger.info("Open http://localhost:%d in your browser", config.http_port)

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
