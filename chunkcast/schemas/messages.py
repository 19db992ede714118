from __future__ import annotations

import json
from dataclasses import dataclass


START = "start"
STOP = "stop"

NO_FILENAME = "Error: No filename provided"
FILE_NOT_FOUND = "Error: File {name} not found"
STREAM_STARTED = "Streaming {name}"
STREAM_FINISHED = "Streaming finished"
STREAM_STOPPED = "Streaming stopped"
OPEN_ERROR = "Error opening audio file"
READ_ERROR = "Error reading audio file"
WRITE_ERROR = "Error writing audio data"


class MalformedMessage(ValueError):
    """Raised when an inbound frame is not a valid control message."""


@dataclass
class ControlMessage:
    action: str
    filename: str = ""


@dataclass
class StatusMessage:
    data: str
    type: str = "status"

    def to_json(self) -> str:
        return json.dumps({"type": self.type, "data": self.data})


def parse_control_message(raw: str | bytes) -> ControlMessage:
    """
    Parse one inbound text frame into a ControlMessage

    Args:
        raw: the frame payload, `{"action": ..., "filename": ...}`

    Returns:
        the parsed ControlMessage, with a missing filename as ""

    Raises:
        MalformedMessage: the payload is not a JSON object or has no string action
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedMessage(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessage(f"expected a JSON object, got {type(data).__name__}")

    action = data.get("action")
    if not isinstance(action, str):
        raise MalformedMessage("missing 'action' field")

    filename = data.get("filename")
    if filename is None:
        filename = ""
    if not isinstance(filename, str):
        raise MalformedMessage("'filename' must be a string")

    return ControlMessage(action=action, filename=filename)
