"""Format-specific text extractors and the engine that selects them.

Extractors raise ``ExtractionFailedError``; the engine turns every outcome,
including timeouts, into an ``ExtractionResult`` so callers never see an
exception from this layer.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

from pydantic import BaseModel

from studyvault.config import PDF_MIMETYPE, TEXT_MIMETYPES
from studyvault.errors import ExtractionFailedError
from studyvault.models.extraction import DocumentInfo, ExtractionResult, ExtractorName
from studyvault.parsing.pdf_parser import parse_pdf
from studyvault.parsing.text_cleaning import clean_text, extract_key_info

logger = logging.getLogger(__name__)


class RawExtraction(BaseModel):
    """Unprocessed extractor output."""

    text: str
    document: DocumentInfo | None = None


class BaseExtractor(ABC):
    """Contract for all text extractors."""

    name: ExtractorName
    # Verbatim extractors keep their text as-is; key-info still uses the cleaned form
    verbatim: bool = False

    @abstractmethod
    def extract(self, data: bytes) -> RawExtraction:
        """Extract raw text from document bytes.

        Args:
            data: Raw file content.

        Returns:
            Raw text plus any structural information.

        Raises:
            ExtractionFailedError: if the content cannot be parsed.
        """


class PdfExtractor(BaseExtractor):
    """Extracts text, page count, info and version from PDF using pypdf."""

    name: ExtractorName = "pdf"

    def extract(self, data: bytes) -> RawExtraction:
        content = parse_pdf(data)
        return RawExtraction(text=content.text, document=content.document_info())


class PlainTextExtractor(BaseExtractor):
    """Decodes plain text and markdown as UTF-8."""

    name: ExtractorName = "text"
    verbatim = True

    def extract(self, data: bytes) -> RawExtraction:
        return RawExtraction(text=data.decode("utf-8", errors="replace"))


class ExtractorRegistry:
    """Maps declared mimetypes to extractor instances."""

    def __init__(self, extractors: dict[str, BaseExtractor] | None = None) -> None:
        if extractors is None:
            text_extractor = PlainTextExtractor()
            extractors = {PDF_MIMETYPE: PdfExtractor()}
            extractors.update({mimetype: text_extractor for mimetype in TEXT_MIMETYPES})
        self._extractors = extractors

    def register(self, mimetype: str, extractor: BaseExtractor) -> None:
        self._extractors[mimetype.lower()] = extractor

    def get(self, mimetype: str) -> BaseExtractor | None:
        return self._extractors.get(mimetype.lower())


class ExtractionEngine:
    """Runs the extractor for a mimetype and post-processes its text.

    Async extractions run on a dedicated, bounded thread pool. An extractor
    that outlives its timeout keeps one of these threads busy until it
    returns, but never a thread that blob reads and writes depend on.
    """

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        timeout_seconds: float = 15.0,
        max_workers: int = 2,
    ) -> None:
        self._registry = registry or ExtractorRegistry()
        self._timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="studyvault-extraction"
        )

    def supports(self, mimetype: str) -> bool:
        return self._registry.get(mimetype) is not None

    def close(self) -> None:
        """Stop accepting work and drop queued extractions."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def process_sync(self, data: bytes, mimetype: str) -> ExtractionResult:
        """Extract and clean text without a timeout.

        Args:
            data: Raw file content.
            mimetype: Declared content type selecting the extractor.

        Returns:
            ExtractionResult; failures are reported, never raised.
        """
        extractor = self._registry.get(mimetype)
        if extractor is None:
            return ExtractionResult(
                success=False,
                extractor="text",
                error=f"No extractor registered for {mimetype}",
            )

        try:
            raw = extractor.extract(data)
        except ExtractionFailedError as e:
            logger.info(f"Extraction failed ({extractor.name}): {e}")
            return ExtractionResult(success=False, extractor=extractor.name, error=str(e))
        except Exception as e:
            logger.warning(f"Unexpected {extractor.name} extraction error: {e}")
            return ExtractionResult(
                success=False,
                extractor=extractor.name,
                error=f"Extraction error: {e}",
            )

        cleaned = clean_text(raw.text)
        return ExtractionResult(
            success=True,
            extractor=extractor.name,
            text=raw.text if extractor.verbatim else cleaned,
            key_info=extract_key_info(cleaned),
            document=raw.document,
        )

    async def process(self, data: bytes, mimetype: str) -> ExtractionResult:
        """Extract text on the extraction pool, bounded by the configured timeout.

        A timeout is reported the same way as a parse failure.
        """
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.process_sync, data, mimetype),
                timeout=self._timeout_seconds,
            )
        except TimeoutError:
            extractor = self._registry.get(mimetype)
            logger.warning(
                f"Extraction of {mimetype} timed out after {self._timeout_seconds}s"
            )
            return ExtractionResult(
                success=False,
                extractor=extractor.name if extractor else "text",
                error=f"Extraction timed out after {self._timeout_seconds:g} seconds",
            )
