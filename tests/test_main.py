"""Tests for the command-line entry point."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

import main
from spider.models import CrawlResult


class TestBuildConfig(unittest.TestCase):
    """Verify argument parsing into a CrawlConfig."""

    def test_flags_map_to_config(self):
        """Command line flags land in the matching CrawlConfig fields."""
        args = main.build_parser().parse_args(
            ["http://a.test/", "-r", "2", "-m", "-i", "-o", "out.txt", "--rps", "4", "--max-pages", "50"]
        )
        config = main.build_config(args)
        self.assertEqual(config.seed.value, "http://a.test/")
        self.assertEqual(config.max_depth, 2)
        self.assertTrue(config.show_mail)
        self.assertTrue(config.include_external)
        self.assertEqual(config.output, "out.txt")
        self.assertEqual(config.requests_per_second, 4.0)
        self.assertEqual(config.workers, 4)
        self.assertEqual(config.max_pages, 50)

    def test_bad_seed_exits_with_config_error(self):
        """A malformed seed URL exits with status 2."""
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            code = main.main(["not-a-url"])
        self.assertEqual(code, 2)
        self.assertIn("invalid seed url", stderr.getvalue())

    def test_bad_rate_exits_with_config_error(self):
        """A non-positive rate exits with status 2."""
        with redirect_stderr(io.StringIO()):
            self.assertEqual(main.main(["http://a.test/", "--rps", "0"]), 2)


class TestRunCrawl(unittest.TestCase):
    """Verify the CLI prints and writes the final lists."""

    @patch("main.CrawlEngine")
    def test_prints_summary_and_hides_mail_by_default(self, engine_cls):
        """The summary line is printed and emails stay hidden without -m."""
        engine = engine_cls.return_value
        engine.wait.return_value = True
        engine.result.return_value = CrawlResult(
            visited=("http://a.test/",), emails=("u@a.test",), succeeded=1, failed=0, failures=(), state="done"
        )
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = main.main(["http://a.test/"])
        self.assertEqual(code, 0)
        out = stdout.getvalue()
        self.assertIn("http://a.test/", out)
        self.assertNotIn("u@a.test", out)
        self.assertIn("DONE:", out)


if __name__ == "__main__":
    unittest.main()
