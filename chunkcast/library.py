from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, BinaryIO

from chunkcast.config import AUDIO_EXTENSIONS


_DURATION_PATTERN = re.compile(r"-(\d+)s\.[^.]+$")


def duration_from_filename(filename: str) -> int:
    """
    Parse a track duration in seconds from names like `sample-003s.mp3`

    Returns 0 when the name does not follow the pattern.
    """
    match = _DURATION_PATTERN.search(filename)
    return int(match.group(1)) if match else 0


class AudioLibrary:
    def __init__(self, root: str | Path, extensions: tuple[str, ...] = AUDIO_EXTENSIONS, url_prefix: str = "/audio") -> None:
        """
        Args:
            root: directory holding the audio files
            extensions: file extensions that are listed and streamed
            url_prefix: URL the root directory is served under by the HTTP server
        """
        self.root = Path(root)
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.url_prefix = url_prefix.rstrip("/")


    def _is_audio(self, name: str) -> bool:
        return name.lower().endswith(self.extensions)


    def list_files(self) -> list[str]:
        """
        Lists the names of the audio files in the library root

        Raises:
            OSError: the root directory cannot be read
        """
        return sorted(
            entry.name for entry in os.scandir(self.root)
            if entry.is_file() and self._is_audio(entry.name)
        )


    def describe(self) -> list[dict[str, Any]]:
        """
        Lists the audio files with their URL, size in bytes and duration

        Raises:
            OSError: the root directory cannot be read
        """
        files = []
        for name in self.list_files():
            try:
                size = (self.root / name).stat().st_size
            except OSError:
                continue

            files.append({
                "name": name,
                "path": f"{self.url_prefix}/{name}",
                "size": size,
                "duration": duration_from_filename(name),
            })

        return files


    def resolve(self, filename: str) -> Path | None:
        """
        Resolve a client supplied filename to a file inside the library root

        Args:
            filename: bare file name as sent by the client

        Returns:
            the path of the file, or None if it does not exist or would escape the root
        """
        if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
            return None

        path = self.root / filename
        try:
            if not path.is_file():
                return None
        except OSError:
            return None

        return path


    def open(self, path: Path) -> BinaryIO:
        return open(path, "rb")


    def size(self, path: Path) -> int:
        return path.stat().st_size
