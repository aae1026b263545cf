"""Tests for the PageFetcher implementations."""

import unittest
from unittest.mock import MagicMock, Mock, patch

import requests
from curl_cffi import CurlError

from spider.base import PageFetcher
from spider.errors import FetchError, FetchErrorKind
from spider.fetchers import ImpersonatingFetcher, RequestsFetcher, create_fetcher
from spider.models import DEFAULT_USER_AGENT, CrawlConfig


def _response(status=200, body=b"<html></html>", content_type="text/html; charset=utf-8", encoding="utf-8"):
    resp = Mock()
    resp.status_code = status
    resp.content = body
    resp.encoding = encoding
    resp.headers = {"Content-Type": content_type} if content_type else {}
    return resp


class TestPageFetcherPipeline(unittest.TestCase):
    """Verify status and decoding rules shared by every fetcher."""

    def _fetcher(self, response):
        class StaticFetcher(PageFetcher):
            def _send(self, url):
                return response

        return StaticFetcher()

    def test_returns_text_for_2xx(self):
        """Any 2xx response returns the decoded body."""
        self.assertEqual(self._fetcher(_response(204, b"ok")).fetch("http://a.test/"), "ok")

    def test_non_2xx_is_http_error(self):
        """A non-2xx status raises an HTTP FetchError with the status."""
        with self.assertRaises(FetchError) as ctx:
            self._fetcher(_response(404)).fetch("http://a.test/")
        self.assertIs(ctx.exception.kind, FetchErrorKind.HTTP)
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.reason, "http:404")

    def test_binary_content_type_is_decode_error(self):
        """A non-text content type raises a decode FetchError."""
        with self.assertRaises(FetchError) as ctx:
            self._fetcher(_response(body=b"\x89PNG", content_type="image/png")).fetch("http://a.test/x.png")
        self.assertIs(ctx.exception.kind, FetchErrorKind.DECODE)

    def test_undecodable_bytes_is_decode_error(self):
        """Bytes that do not decode raise a decode FetchError."""
        with self.assertRaises(FetchError) as ctx:
            self._fetcher(_response(body=b"\xff\xfe\xfa")).fetch("http://a.test/")
        self.assertIs(ctx.exception.kind, FetchErrorKind.DECODE)

    def test_missing_content_type_still_decodes(self):
        """A response without a content type is decoded as text."""
        fetcher = self._fetcher(_response(body=b"plain", content_type=None, encoding=None))
        self.assertEqual(fetcher.fetch("http://a.test/"), "plain")

    def test_empty_url_rejected(self):
        """An empty URL is rejected before any request."""
        with self.assertRaises(ValueError):
            self._fetcher(_response()).fetch("")


class TestRequestsFetcher(unittest.TestCase):
    """Verify the requests-based fetcher maps transport failures."""

    @patch("spider.fetchers.requests.get")
    def test_fetch_success(self, mock_get):
        """requests.get is called with the configured timeout and UA."""
        mock_get.return_value = _response(body=b"hello http://a.test/")
        fetcher = RequestsFetcher(timeout=3, user_agent="spider-test")
        self.assertEqual(fetcher.fetch("http://a.test/"), "hello http://a.test/")
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs["timeout"], 3)
        self.assertEqual(kwargs["headers"]["User-Agent"], "spider-test")

    @patch("spider.fetchers.requests.get")
    def test_connection_error_is_network_error(self, mock_get):
        """A refused connection maps to a network FetchError."""
        mock_get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(FetchError) as ctx:
            RequestsFetcher().fetch("http://a.test/")
        self.assertIs(ctx.exception.kind, FetchErrorKind.NETWORK)
        self.assertIn("ConnectionError", ctx.exception.reason)

    @patch("spider.fetchers.requests.get")
    def test_timeout_is_network_error(self, mock_get):
        """A timeout maps to a network FetchError."""
        mock_get.side_effect = requests.Timeout("slow")
        with self.assertRaises(FetchError) as ctx:
            RequestsFetcher().fetch("http://a.test/")
        self.assertIs(ctx.exception.kind, FetchErrorKind.NETWORK)


class TestImpersonatingFetcher(unittest.TestCase):
    """Verify the curl_cffi-based fetcher."""

    @patch("spider.fetchers.curl_requests.Session")
    def test_fetch_uses_impersonation(self, mock_session_cls):
        """The session is called with the impersonation profile and closed."""
        session = MagicMock()
        session.get.return_value = _response(body=b"page")
        mock_session_cls.return_value = session
        fetcher = ImpersonatingFetcher(impersonate="chrome120", timeout=5)
        self.assertEqual(fetcher.fetch("http://a.test/"), "page")
        _, kwargs = session.get.call_args
        self.assertEqual(kwargs["impersonate"], "chrome120")
        self.assertNotIn("User-Agent", kwargs["headers"])
        session.close.assert_called_once()

    @patch("spider.fetchers.curl_requests.Session")
    def test_curl_error_is_network_error(self, mock_session_cls):
        """A CurlError maps to a network FetchError and still closes the session."""
        session = MagicMock()
        session.get.side_effect = CurlError("timed out")
        mock_session_cls.return_value = session
        with self.assertRaises(FetchError) as ctx:
            ImpersonatingFetcher().fetch("http://a.test/")
        self.assertIs(ctx.exception.kind, FetchErrorKind.NETWORK)
        session.close.assert_called_once()


class TestCreateFetcher(unittest.TestCase):
    """Verify fetcher selection from the run configuration."""

    def test_plain_by_default(self):
        """Without --impersonate a RequestsFetcher with the default UA is built."""
        config = CrawlConfig.create("http://a.test/")
        fetcher = create_fetcher(config)
        self.assertIsInstance(fetcher, RequestsFetcher)
        self.assertEqual(fetcher._headers["User-Agent"], DEFAULT_USER_AGENT)

    def test_impersonating_when_configured(self):
        """--impersonate selects curl_cffi and leaves the UA to the browser profile."""
        config = CrawlConfig.create("http://a.test/", impersonate="chrome120")
        fetcher = create_fetcher(config)
        self.assertIsInstance(fetcher, ImpersonatingFetcher)
        self.assertNotIn("User-Agent", fetcher._headers)

    def test_impersonating_keeps_explicit_user_agent(self):
        """An explicit user agent is still sent when impersonating."""
        config = CrawlConfig.create("http://a.test/", impersonate="chrome120", user_agent="spider-test")
        fetcher = create_fetcher(config)
        self.assertEqual(fetcher._headers["User-Agent"], "spider-test")


if __name__ == "__main__":
    unittest.main()
