import os
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_tailor.core.scoring_config import (  # noqa: E402
    get_scoring_config,
    get_scoring_value,
    reset_scoring_config_cache,
)


class ScoringConfigTests(unittest.TestCase):
    def tearDown(self):
        os.environ.pop("SCORING_CONFIG_PATH", None)
        reset_scoring_config_cache()

    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("quality_gate.min_chars"), 3000)
        self.assertEqual(get_scoring_value("scoring.category_weights.core_tech"), 35)
        self.assertEqual(get_scoring_value("keywords.budget"), 30)

    def test_missing_path_returns_default(self):
        self.assertEqual(get_scoring_value("quality_gate.not_a_key", 7), 7)
        self.assertEqual(get_scoring_value("", "fallback"), "fallback")

    def test_override_path_is_honoured(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("quality_gate:\n  min_chars: 1200\n", encoding="utf-8")
            os.environ["SCORING_CONFIG_PATH"] = str(path)
            reset_scoring_config_cache()
            self.assertEqual(get_scoring_value("quality_gate.min_chars"), 1200)

    def test_non_mapping_config_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            os.environ["SCORING_CONFIG_PATH"] = str(path)
            reset_scoring_config_cache()
            with self.assertRaises(RuntimeError):
                get_scoring_config()


if __name__ == "__main__":
    unittest.main()
