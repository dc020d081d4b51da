"""
Main orchestrator for the html_blocks converter.

Wires the two stages together: Preprocessor (HTML string → ElementNode) and
BlockGenerator (ElementNode → ContentState). Callers that already hold a
parsed tree can skip straight to convert_element().
"""

from pathlib import Path
from typing import Any, Optional, Union

from .converter import state_from_element
from .logger import get_module_logger, setup_logger
from .preprocessor import Preprocessor
from .schemas import ContentState, ConverterOptions

logger = get_module_logger("main")


class HTMLImporter:
    """
    Main orchestrator for HTML import.

    Options are validated once here and reused for every conversion.
    """

    def __init__(
        self,
        options: Optional[Any] = None,
        parser: str = "html5lib",
        log_level: Optional[Union[int, str]] = None
    ):
        if log_level is not None:
            setup_logger(level=log_level)

        self.options = ConverterOptions.coerce(options)
        self.preprocessor = Preprocessor(parser=parser)

        logger.debug(f"HTMLImporter initialized with parser={parser}")

    def convert_element(self, element: Any) -> ContentState:
        """Convert an already parsed tree (ElementNode, BeautifulSoup or lxml)."""
        return state_from_element(element, self.options)

    def convert_html(self, html: str) -> ContentState:
        """
        Parse HTML and convert its body.

        Args:
            html: Raw HTML string (a fragment or a whole document)

        Returns:
            ContentState with at least one block
        """
        preprocessed = self.preprocessor.process(html)
        for warning in preprocessed["warnings"]:
            logger.warning(warning)
        return state_from_element(preprocessed["root"], self.options)

    def convert_file(self, file_path: Union[str, Path]) -> ContentState:
        """Convert an HTML file, decoding it with its declared charset."""
        file_path = Path(file_path)

        # Read bytes first so the <meta> charset decides the decoding
        raw_bytes = file_path.read_bytes()
        declared_charset = Preprocessor.detect_charset_from_bytes(raw_bytes)
        try:
            html = raw_bytes.decode(declared_charset, errors='replace')
        except LookupError:
            logger.warning(f"Unknown charset {declared_charset!r} in {file_path.name}, using utf-8")
            html = raw_bytes.decode('utf-8', errors='replace')

        logger.info(f"Converting {file_path.name} ({declared_charset})")
        return self.convert_html(html)


def state_from_html(html: str, options: Optional[Any] = None) -> ContentState:
    """Convenience function to convert an HTML string."""
    return HTMLImporter(options=options).convert_html(html)


def state_from_html_file(file_path: Union[str, Path], options: Optional[Any] = None) -> ContentState:
    """Convenience function to convert an HTML file."""
    return HTMLImporter(options=options).convert_file(file_path)
