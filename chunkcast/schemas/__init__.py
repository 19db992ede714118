from .messages import ControlMessage, StatusMessage, MalformedMessage, parse_control_message

__all__ = ["ControlMessage", "StatusMessage", "MalformedMessage", "parse_control_message"]
