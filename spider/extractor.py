"""Link and email extraction from page text.

The body is parsed with BeautifulSoup and three kinds of token are recognised:

- ``<a href>`` values, resolved against the page URL; ``mailto:`` targets
  are reported as emails
- email addresses (``user@host.tld``) in the visible text
- URLs with an explicit scheme, or host-like tokens without one
  (``www.example.com/page``), which inherit the page's scheme

The email pattern is tried before the URL patterns at every position, so an
address is never also reported as a scheme-less link.
"""
from __future__ import annotations

import re
from typing import Iterator, List, NamedTuple, Set, Tuple, Union

from bs4 import BeautifulSoup

from .errors import ExtractionError
from .models import EmailAddress, Url

LINK = "link"
EMAIL = "email"

_EMAIL = r"(?<![a-zA-Z0-9._%+\-])[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}"
_SCHEME_URL = r"(?<![a-zA-Z0-9+.\-])[a-zA-Z][a-zA-Z0-9+.\-]*://[^\s<>\"'`]+"
_BARE_URL = (
    r"(?<![\w@./:\-])"
    r"(?:[a-zA-Z0-9\-]+\.)+[a-zA-Z]{2,24}"
    r"(?::\d{1,5})?"
    r"(?P<path>/[^\s<>\"'`]*)?"
)

_TOKEN_RE = re.compile(rf"(?P<email>{_EMAIL})|(?P<url>{_SCHEME_URL})|(?P<bare>{_BARE_URL})")
_EMAIL_RE = re.compile(_EMAIL)

_TRAILING = ".,;:!?)]}'\""

# host-like tokens that are really file names
_FILE_SUFFIXES = {
    "html", "htm", "php", "asp", "aspx", "js", "css", "png", "jpg", "jpeg",
    "gif", "svg", "webp", "ico", "json", "xml", "txt", "pdf", "map",
}

_SKIP_HREF_PREFIXES = ("#", "javascript:", "tel:", "data:", "sms:")


class Token(NamedTuple):
    kind: str
    value: Union[Url, EmailAddress]


def _is_file_name(host_like: str) -> bool:
    return host_like.rsplit(".", 1)[-1].lower() in _FILE_SUFFIXES


def _is_junk_email(addr: str) -> bool:
    # asset names such as logo@2x.png
    return _is_file_name(addr.rsplit("@", 1)[-1])


class LinkExtractor:
    """Scans page text for hyperlink-like and email-like tokens.

    Holds no state between calls; iter_tokens() starts a fresh scan every
    time it is invoked."""

    def iter_tokens(self, body: str, page_url: Url) -> Iterator[Token]:
        if not isinstance(body, str):
            raise ExtractionError(f"expected text body, got {type(body).__name__}")
        return self._scan(body, page_url)

    def extract(self, body: str, page_url: Url) -> Tuple[List[Url], List[EmailAddress]]:
        """Return the candidate links (absolute) and email addresses in ``body``."""
        links: List[Url] = []
        emails: List[EmailAddress] = []
        for token in self.iter_tokens(body, page_url):
            if token.kind == EMAIL:
                emails.append(token.value)
            else:
                links.append(token.value)
        return links, emails

    def _scan(self, body: str, page_url: Url) -> Iterator[Token]:
        seen_links: Set[str] = set()
        seen_emails: Set[str] = set()
        depth = page_url.depth + 1

        def link(url: Url):
            if url.value in seen_links:
                return None
            seen_links.add(url.value)
            return Token(LINK, url)

        def email(addr: str):
            if addr in seen_emails or _is_junk_email(addr):
                return None
            seen_emails.add(addr)
            return Token(EMAIL, addr)

        soup = BeautifulSoup(body, "html.parser")
        for anchor in soup.find_all("a", href=True):
            raw = anchor["href"].strip()
            if not raw or raw.lower().startswith(_SKIP_HREF_PREFIXES):
                continue
            if raw.lower().startswith("mailto:"):
                addr = raw[len("mailto:"):].split("?", 1)[0].strip()
                token = email(addr) if _EMAIL_RE.fullmatch(addr) else None
                if token:
                    yield token
                continue
            try:
                url = Url.parse(raw, base=page_url.value, depth=depth)
            except ValueError:
                continue
            token = link(url)
            if token:
                yield token

        text = soup.get_text(" ")
        scheme = page_url.value.split("://", 1)[0]
        for match in _TOKEN_RE.finditer(text):
            if match.group("email"):
                token = email(match.group("email"))
            elif match.group("url"):
                token = self._link_token(match.group("url").rstrip(_TRAILING), depth, link)
            else:
                bare = match.group("bare")
                if not match.group("path") and _is_file_name(bare):
                    continue
                token = self._link_token(f"{scheme}://{bare.rstrip(_TRAILING)}", depth, link)
            if token:
                yield token

    @staticmethod
    def _link_token(raw: str, depth: int, link):
        try:
            url = Url.parse(raw, depth=depth)
        except ValueError:
            return None
        return link(url)
