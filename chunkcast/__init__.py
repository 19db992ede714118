from .config import ServerConfig
from .library import AudioLibrary
from .session import Session
from .transfer import TransferWorker
from .server import StreamServer, create_app, start_local_server

__all__ = ["ServerConfig", "AudioLibrary", "Session", "TransferWorker", "StreamServer", "create_app", "start_local_server"]
