"""
Preprocessor: turns an HTML string into the ElementNode tree the converter walks.

- Sanitizes the raw string (invalid bytes, line endings, NULL bytes, control characters)
- Parses it with BeautifulSoup, falling back html5lib → lxml → html.parser
- Hands back the <body> as an ElementNode (comments and doctypes dropped)

Design principle: NEVER FAIL on bad HTML. Always produce a tree.

Pipeline position: HTML string in, ElementNode out (consumed by converter.py).
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

from .exceptions import InvalidConfigurationError, PreprocessorError
from .logger import get_module_logger
from .nodes import ElementNode, from_soup

logger = get_module_logger("preprocessor")

PARSERS = ("html5lib", "lxml", "html.parser")

# Control characters other than tab, newline and carriage return
_CONTROL_CHARS = "".join(chr(c) for c in range(32) if c not in (9, 10, 13))
_CONTROL_TABLE = str.maketrans("", "", _CONTROL_CHARS)
_LINE_ENDINGS = re.compile(r"\r\n?")

# Browsers look for a <meta> charset within the first bytes of the document
_SNIFF_BYTES = 2048
_META_CHARSET_PATTERNS = (
    # <meta charset="...">
    re.compile(rb'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', re.IGNORECASE),
    # <meta http-equiv="Content-Type" content="text/html; charset=...">
    re.compile(rb'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)', re.IGNORECASE),
)


class Preprocessor:
    """
    Rule-based HTML preprocessor.

    Cleans the string just enough for the parsers, then adapts the parsed
    body into the converter's node tree.
    """

    # WHATWG encoding spec: browsers silently remap these charsets.
    # https://encoding.spec.whatwg.org/#names-and-labels
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Charset a browser would decode raw_bytes with, from the first <meta>
        declaration in the sniffing window. Defaults to utf-8.
        """
        head = raw_bytes[:_SNIFF_BYTES]
        for pattern in _META_CHARSET_PATTERNS:
            match = pattern.search(head)
            if match is None:
                continue
            label = match.group(1).decode('ascii', errors='ignore').strip().lower()
            if label:
                return Preprocessor.WHATWG_CHARSET_MAP.get(label, label)
        return 'utf-8'

    def __init__(self, parser: str = "html5lib"):
        """
        Initialize preprocessor.

        Args:
            parser: First BeautifulSoup parser to try; the rest of the
                    html5lib → lxml → html.parser chain follows it.
        """
        if parser not in PARSERS:
            raise InvalidConfigurationError(
                f"Unknown parser: {parser}",
                details={"supported": list(PARSERS)}
            )
        self.parsers = PARSERS[PARSERS.index(parser):]

    def _sanitize_html(self, html: str) -> tuple[str, list[str]]:
        """
        Fix string-level problems that trip parsers.

        Returns:
            Tuple of (sanitized HTML, list of warnings)
        """
        warnings = []

        # Lone surrogates can't be encoded; replace them
        sanitized = html.encode('utf-8', errors='replace').decode('utf-8')

        # Every parser then sees the same "\n" line endings
        sanitized = _LINE_ENDINGS.sub('\n', sanitized)

        if '\x00' in sanitized:
            sanitized = sanitized.replace('\x00', '')
            warnings.append("Removed NULL bytes")

        if any(c in sanitized for c in _CONTROL_CHARS):
            sanitized = sanitized.translate(_CONTROL_TABLE)
            warnings.append("Removed control characters")

        logger.debug(f"Sanitization complete. {len(warnings)} fixes applied.")
        return sanitized, warnings

    def _parse(self, html: str, warnings: list[str]) -> tuple[BeautifulSoup, str]:
        # html5lib follows the WHATWG algorithm and copes with the worst markup;
        # lxml and html.parser are the fallbacks if it errors out
        last_error: Optional[Exception] = None
        for parser in self.parsers:
            try:
                return BeautifulSoup(html, parser), parser
            except Exception as e:
                logger.warning(f"{parser} parsing failed: {e}")
                warnings.append(f"{parser} parsing failed: {e}")
                last_error = e
        raise PreprocessorError(
            "All parsers failed",
            details={"parsers": list(self.parsers), "error": str(last_error)}
        )

    def process(self, html: str) -> dict:
        """
        Parse HTML into the converter's node tree.

        Returns:
            dict with:
                - root: ElementNode for <body> (or the whole document without one)
                - parser: the BeautifulSoup parser that succeeded
                - sanitized_html: HTML after string-level fixes
                - warnings: list of warnings encountered
        """
        sanitized_html, warnings = self._sanitize_html(html)
        soup, parser = self._parse(sanitized_html, warnings)

        body = soup.body
        if body is None:
            warnings.append("No <body> found, using document root")
            root = from_soup(soup)
        else:
            root = from_soup(body)

        return {
            "root": root,
            "parser": parser,
            "sanitized_html": sanitized_html,
            "warnings": warnings,
        }


def parse_html(html: str, parser: str = "html5lib") -> ElementNode:
    """Convenience function: HTML string → body ElementNode."""
    return Preprocessor(parser=parser).process(html)["root"]
