from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


_PKG_DIR = Path(__file__).parent

HOST = "0.0.0.0"
HTTP_PORT = 8080
WS_PORT = 8765

STATIC_DIR = _PKG_DIR / "static"
RESOURCE_DIR = STATIC_DIR / "audio"
AUDIO_EXTENSIONS = (".mp3", ".wav")

CHUNK_SIZE = 8192
PACING_DELAY = 0.02
SEND_TIMEOUT = 10.0
SHUTDOWN_GRACE = 1.0


@dataclass
class ServerConfig:
    """
    Runtime settings shared by the HTTP and WebSocket servers

    Attributes:
        host: interface both servers bind to
        http_port: port of the Flask server (index, listing, static files)
        ws_port: port of the streaming WebSocket server
        resource_dir: directory the audio files are served from
        static_dir: directory of the web UI assets
        chunk_size: maximum number of bytes per binary frame
        pacing_delay: seconds to wait after each chunk is sent
        send_timeout: seconds a single frame write may take before the transfer is ended
        shutdown_grace: seconds a closing session waits for its transfer to exit
    """
    host: str = HOST
    http_port: int = HTTP_PORT
    ws_port: int = WS_PORT
    resource_dir: Path = RESOURCE_DIR
    static_dir: Path = STATIC_DIR
    chunk_size: int = CHUNK_SIZE
    pacing_delay: float = PACING_DELAY
    send_timeout: float = SEND_TIMEOUT
    shutdown_grace: float = SHUTDOWN_GRACE

    def __post_init__(self) -> None:
        self.resource_dir = Path(self.resource_dir)
        self.static_dir = Path(self.static_dir)

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.pacing_delay < 0:
            raise ValueError(f"pacing_delay must not be negative, got {self.pacing_delay}")
        if self.send_timeout <= 0:
            raise ValueError(f"send_timeout must be positive, got {self.send_timeout}")
        if self.shutdown_grace < 0:
            raise ValueError(f"shutdown_grace must not be negative, got {self.shutdown_grace}")
