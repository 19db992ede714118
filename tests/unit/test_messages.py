import json
import unittest

from chunkcast.config import ServerConfig
from chunkcast.schemas.messages import ControlMessage, MalformedMessage, StatusMessage, parse_control_message


class TestMessages(unittest.TestCase):

    def test_parse_start(self):
        msg = parse_control_message('{"action": "start", "filename": "sample.mp3"}')
        self.assertEqual(msg, ControlMessage(action="start", filename="sample.mp3"))


    def test_parse_stop_without_filename(self):
        msg = parse_control_message('{"action": "stop"}')
        self.assertEqual(msg, ControlMessage(action="stop", filename=""))


    def test_parse_null_filename(self):
        msg = parse_control_message('{"action": "start", "filename": null}')
        self.assertEqual(msg.filename, "")


    def test_parse_rejects_malformed_frames(self):
        for raw in ["", "{", "42", '"start"', "[]", '{"filename": "a.mp3"}', '{"action": 1}', '{"action": "start", "filename": 5}']:
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedMessage):
                    parse_control_message(raw)


    def test_parse_rejects_falsy_non_string_filename(self):
        for filename in ["0", "false", "[]", "{}"]:
            with self.subTest(filename=filename):
                with self.assertRaises(MalformedMessage):
                    parse_control_message('{"action": "start", "filename": ' + filename + "}")


    def test_status_to_json(self):
        self.assertEqual(
            json.loads(StatusMessage("Streaming finished").to_json()),
            {"type": "status", "data": "Streaming finished"},
        )


class TestServerConfig(unittest.TestCase):

    def test_rejects_invalid_values(self):
        for overrides in [{"chunk_size": 0}, {"pacing_delay": -1}, {"send_timeout": 0}, {"shutdown_grace": -0.5}]:
            with self.subTest(**overrides):
                with self.assertRaises(ValueError):
                    ServerConfig(**overrides)


    def test_paths_are_normalised(self):
        config = ServerConfig(resource_dir="audio", static_dir="web")
        self.assertEqual(config.resource_dir.name, "audio")
        self.assertEqual(config.static_dir.name, "web")


if __name__ == '__main__':
    unittest.main()
