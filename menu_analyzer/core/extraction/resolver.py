"""
Source resolution
Turns an uploaded file, a URL or pasted text into plain menu text.
"""

from typing import Optional

import httpx
from loguru import logger

from menu_analyzer.config import get_settings
from menu_analyzer.core.errors import ExtractionError, ExtractionFailure
from menu_analyzer.core.processors.image import ImageDecodeError, ImageProcessor
from menu_analyzer.core.processors.pdf import PDFProcessor, get_pdf_processor
from menu_analyzer.core.processors.web import WebPageFetcher, is_http_url
from menu_analyzer.core.prompts.builder import PromptBuilder, get_prompt_builder
from menu_analyzer.models.domain import (
    ExtractedText,
    FileSource,
    MenuSource,
    RawTextSource,
    UrlSource,
)
from menu_analyzer.services.llm_client import (
    Attachment,
    LLMClient,
    LLMClientError,
    LLMRateLimitError,
)

PASTED_TEXT = "pasted text"


class SourceResolver:
    """Handles extraction of plain text from every supported menu source"""

    def __init__(
        self,
        llm_client: LLMClient,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None,
        fetcher: Optional[WebPageFetcher] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        max_file_size: Optional[int] = None,
        min_url_text_length: Optional[int] = None,
    ):
        settings = get_settings()
        self.llm = llm_client
        self.pdf_processor = pdf_processor or get_pdf_processor()
        self.image_processor = image_processor or ImageProcessor()
        self.fetcher = fetcher or WebPageFetcher(timeout=settings.URL_FETCH_TIMEOUT_SECONDS)
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.max_file_size = max_file_size or settings.max_file_size_bytes
        self.min_url_text_length = (
            min_url_text_length if min_url_text_length is not None else settings.MIN_URL_TEXT_LENGTH
        )

    async def resolve(self, source: MenuSource) -> ExtractedText:
        """
        Convert a menu source to text.

        Raises:
            ExtractionError: the source is empty, malformed, unreachable or unreadable
        """
        if isinstance(source, FileSource):
            if source.kind == "pdf":
                return await self.resolve_pdf(source)
            return await self.resolve_image(source)
        if isinstance(source, UrlSource):
            return await self.resolve_url(source)
        if isinstance(source, RawTextSource):
            return self.resolve_text(source)
        raise ExtractionError(
            ExtractionFailure.UNSUPPORTED_FILE_TYPE,
            "Unsupported menu source. Please upload a PDF or image, or provide a URL or text.",
        )

    def _check_file(self, source: FileSource) -> None:
        if not source.data:
            raise ExtractionError(ExtractionFailure.EMPTY_FILE, "The uploaded file is empty.")
        if len(source.data) > self.max_file_size:
            limit_mb = self.max_file_size // (1024 * 1024)
            raise ExtractionError(
                ExtractionFailure.FILE_TOO_LARGE,
                f"File too large. Max size: {limit_mb}MB",
            )

    async def resolve_pdf(self, source: FileSource) -> ExtractedText:
        # All local checks happen before any network call
        self._check_file(source)
        if not self.pdf_processor.has_signature(source.data):
            raise ExtractionError(
                ExtractionFailure.INVALID_PDF,
                "The uploaded file is not a valid PDF document.",
            )

        descriptor = source.file_name or "uploaded PDF"
        try:
            text = self.pdf_processor.extract_text(source.data)
        except Exception as e:
            logger.warning(f"[extract] text layer unreadable for {descriptor}: {e}")
            text = ""

        if text.strip():
            logger.info(f"[extract] pdf text layer used for {descriptor} ({len(text)} chars)")
            return ExtractedText(content=text, origin_kind="pdf", origin_descriptor=descriptor)

        # Scanned PDF: let the model read it
        logger.info(f"[extract] no text layer in {descriptor}, asking model")
        attachment = Attachment(
            data=source.data,
            mime_type="application/pdf",
            file_name=source.file_name,
        )
        text = await self._model_extract(
            "pdf",
            attachment,
            failure_message="Failed to parse PDF. Please try uploading as an image instead.",
        )
        return ExtractedText(content=text, origin_kind="pdf", origin_descriptor=descriptor)

    async def resolve_image(self, source: FileSource) -> ExtractedText:
        self._check_file(source)
        try:
            prepared = self.image_processor.prepare(source.data, source.declared_mime_type)
        except ImageDecodeError as e:
            raise ExtractionError(
                ExtractionFailure.UNREADABLE_FILE,
                "The uploaded image could not be read. Please upload a JPEG, PNG or WebP photo of the menu.",
            ) from e

        descriptor = source.file_name or "uploaded image"
        attachment = Attachment(
            data=prepared.data,
            mime_type=prepared.mime_type,
            file_name=source.file_name,
        )
        text = await self._model_extract(
            "image",
            attachment,
            failure_message="Could not read text from the menu image. Please try a clearer photo.",
        )
        return ExtractedText(content=text, origin_kind="image", origin_descriptor=descriptor)

    async def resolve_url(self, source: UrlSource) -> ExtractedText:
        href = (source.href or "").strip()
        if not is_http_url(href):
            raise ExtractionError(
                ExtractionFailure.INVALID_URL,
                "Please provide a valid http(s) menu URL.",
            )

        try:
            text = await self.fetcher.fetch_text(href)
        except httpx.HTTPError as e:
            logger.warning(f"[extract] fetch failed for {href}: {e}")
            raise ExtractionError(
                ExtractionFailure.FETCH_FAILED,
                f"Failed to fetch menu from URL: {e}",
            ) from e

        if len(text) < self.min_url_text_length:
            raise ExtractionError(
                ExtractionFailure.INSUFFICIENT_CONTENT,
                "Could not extract sufficient menu content from URL",
            )

        logger.info(f"[extract] fetched {len(text)} chars from {href}")
        return ExtractedText(content=text, origin_kind="url", origin_descriptor=href)

    def resolve_text(self, source: RawTextSource) -> ExtractedText:
        if not (source.text or "").strip():
            raise ExtractionError(ExtractionFailure.NO_TEXT, "No menu text provided.")
        return ExtractedText(content=source.text, origin_kind="text", origin_descriptor=PASTED_TEXT)

    async def _model_extract(self, document_kind: str, attachment: Attachment, failure_message: str) -> str:
        prompt = self.prompt_builder.extract_text_prompt(document_kind)
        try:
            text = await self.llm.generate_text(prompt, attachment)
        except LLMRateLimitError as e:
            logger.warning(f"[extract] model rate limited during {document_kind} extraction: {e}")
            raise ExtractionError(
                ExtractionFailure.MODEL_UNAVAILABLE,
                "Our menu reader is busy right now. Please try again later.",
            ) from e
        except LLMClientError as e:
            logger.error(f"[extract] model {document_kind} extraction failed: {e}")
            raise ExtractionError(ExtractionFailure.MODEL_EXTRACTION_FAILED, failure_message) from e

        if not text.strip():
            raise ExtractionError(
                ExtractionFailure.NO_TEXT,
                "No valid menu content could be extracted",
            )
        return text.strip()
