import json
import os
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
for path in (PROJECT_ROOT, PROJECT_ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import tailoring_fixtures  # noqa: E402,F401

from resume_tailor.ai.providers.openai_provider import OpenAIOracle  # noqa: E402
from resume_tailor.ai.types import OracleError  # noqa: E402


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class OpenAIOracleTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("resume_tailor.ai.providers.openai_provider.OpenAI")
        self.openai_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = MagicMock()
        self.openai_cls.return_value = self.client
        self.oracle = OpenAIOracle(model="gpt-4o", api_key="test-key")

    def _user_payload(self):
        messages = self.client.chat.completions.create.call_args.kwargs["messages"]
        content = messages[1]["content"]
        self.assertTrue(content.startswith("UNTRUSTED_INPUT_START\n"))
        self.assertTrue(content.endswith("\nUNTRUSTED_INPUT_END"))
        body = content[len("UNTRUSTED_INPUT_START\n") : -len("\nUNTRUSTED_INPUT_END")]
        return json.loads(body)

    def test_payload_is_encoded_once(self):
        self.client.chat.completions.create.return_value = _completion('{"summary": "Tailored"}')
        resume = 'Jordan "JA" Avery\nSQL Server DBA'

        result = self.oracle.generate({"task": "tailor"}, {"resume_text": resume})

        self.assertEqual(result, {"summary": "Tailored"})
        payload = self._user_payload()
        self.assertEqual(payload["instructions"], {"task": "tailor"})
        self.assertEqual(payload["context"]["resume_text"], resume)
        kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(kwargs["model"], "gpt-4o")

    def test_pre_serialized_input_is_rejected(self):
        with self.assertRaises(TypeError):
            self.oracle.generate(json.dumps({"task": "tailor"}), {"resume_text": "x"})
        with self.assertRaises(TypeError):
            self.oracle.generate({"task": "tailor"}, b"{}")
        self.client.chat.completions.create.assert_not_called()

    def test_transport_failure(self):
        self.client.chat.completions.create.side_effect = TimeoutError("read timed out")
        with self.assertRaises(OracleError) as ctx:
            self.oracle.generate({"task": "tailor"}, {})
        self.assertEqual(ctx.exception.code, "oracle_unavailable")

    def test_unusable_responses(self):
        cases = {"": "empty_response", "not json": "invalid_json", "[1, 2]": "invalid_schema"}
        for content, code in cases.items():
            with self.subTest(content=content):
                self.client.chat.completions.create.return_value = _completion(content)
                with self.assertRaises(OracleError) as ctx:
                    self.oracle.generate({"task": "tailor"}, {})
                self.assertEqual(ctx.exception.code, code)

    def test_missing_api_key(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
            with self.assertRaises(RuntimeError):
                OpenAIOracle(model="gpt-4o")


if __name__ == "__main__":
    unittest.main()
