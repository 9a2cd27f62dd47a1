"""
Text Extraction Service

Turns a stored thesis file into the extraction result the diff engine expects:
- Plain text from every page, with layout-driven line breaks kept
- Detection of image-only PDFs and raw binary streams with no usable text layer
- A structural comparison (pages, words, figures, tables) for coarse change markers

PyMuPDF does the parsing. Only PDF files are supported; anything else is
reported as extraction unavailable.
"""

import shutil
from pathlib import Path
from typing import Any, Dict, List

import fitz  # PyMuPDF

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import ExtractionResult
from thesis_diff.services.capability import looks_binary_text

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".pdf",)


class TextExtractionError(Exception):
    """Raised when a file cannot be opened or read as a PDF."""

    pass


class TextExtractor:
    """
    Extracts plain text and structure from submitted PDF files.

    Attributes:
        settings: Application settings
    """

    def __init__(self):
        """Initialize the extractor with configuration."""
        self.settings = get_settings()

        logger.info(
            "text_extractor_initialized",
            enabled=self.settings.text_extraction_enabled,
            max_pages=self.settings.pdf_max_pages,
            using_library="pymupdf"
        )

    @property
    def available(self) -> bool:
        return self.settings.text_extraction_enabled

    def validate_pdf(self, file_path: Path) -> None:
        """
        Validate that a file is a readable PDF within the configured limits.

        Args:
            file_path: Path to the PDF file

        Raises:
            TextExtractionError: If file is missing, out of bounds, or not a PDF
        """
        if not file_path.exists():
            raise TextExtractionError(f"File not found: {file_path}")

        size = file_path.stat().st_size
        if size < self.settings.min_file_size_bytes:
            raise TextExtractionError(f"File too small: {size} bytes")

        if size > self.settings.max_file_size_bytes:
            raise TextExtractionError(
                f"File too large: {size} bytes "
                f"(max: {self.settings.max_file_size_bytes})"
            )

        try:
            doc = fitz.open(file_path)
        except Exception as e:
            raise TextExtractionError(f"Invalid PDF file: {e}")

        try:
            if not doc.is_pdf:
                raise TextExtractionError("File is not a PDF")
            if doc.page_count == 0:
                raise TextExtractionError("PDF has no pages")
            if doc.page_count > self.settings.pdf_max_pages:
                raise TextExtractionError(
                    f"PDF has too many pages: {doc.page_count} "
                    f"(max: {self.settings.pdf_max_pages})"
                )
        finally:
            doc.close()

        logger.debug("pdf_validated", file_path=str(file_path))

    def extract(self, file_path: Path) -> ExtractionResult:
        """
        Extract plain text from a submitted file.

        Never raises: a disabled parser or unsupported format yields
        ``extraction_available=False``; an unreadable PDF, or one whose pages
        hold images but no text layer, yields ``looks_binary=True``.

        Args:
            file_path: Path to the stored file

        Returns:
            ExtractionResult for the diff engine
        """
        if not self.available or file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
            logger.info(
                "text_extraction_unavailable",
                file_path=str(file_path),
                enabled=self.available
            )
            return ExtractionResult(text=None, extraction_available=False, looks_binary=False)

        try:
            self.validate_pdf(file_path)
            doc = fitz.open(file_path)
            try:
                page_texts = []
                image_pages = 0
                for page in doc:
                    text = page.get_text()
                    page_texts.append(text)
                    if not text.strip() and page.get_images():
                        image_pages += 1
            finally:
                doc.close()
        except (TextExtractionError, RuntimeError) as e:
            logger.warning(
                "text_extraction_failed",
                file_path=str(file_path),
                error=str(e)
            )
            return ExtractionResult(text=None, extraction_available=True, looks_binary=True)

        text = "\n".join(page_texts).strip()
        if len(text) > self.settings.max_extracted_chars:
            text = text[:self.settings.max_extracted_chars]

        image_only = not text and image_pages > 0
        looks_binary = image_only or looks_binary_text(text)

        logger.info(
            "text_extracted",
            file_path=str(file_path),
            pages=len(page_texts),
            chars=len(text),
            image_pages=image_pages,
            looks_binary=looks_binary
        )

        return ExtractionResult(text=text, extraction_available=True, looks_binary=looks_binary)

    def extract_structure(self, file_path: Path) -> Dict[str, Any]:
        """
        Count pages and words and look for figures and tables.

        Raises:
            TextExtractionError: If the PDF cannot be read
        """
        try:
            doc = fitz.open(file_path)
        except Exception as e:
            raise TextExtractionError(f"Failed to open PDF: {e}")

        try:
            has_images = False
            has_tables = False
            word_count = 0

            for page in doc:
                if page.get_images():
                    has_images = True
                word_count += len(page.get_text().split())

            # Table detection is slow, so only the first pages are checked
            for page_num in range(min(5, doc.page_count)):
                tables = doc[page_num].find_tables()
                if tables and len(tables.tables) > 0:
                    has_tables = True
                    break

            return {
                "name": file_path.name,
                "pages": doc.page_count,
                "words": word_count,
                "has_images": has_images,
                "has_tables": has_tables,
            }
        except Exception as e:
            logger.error("structure_extraction_failed", file_path=str(file_path), error=str(e))
            raise TextExtractionError(f"Failed to read PDF structure: {e}")
        finally:
            doc.close()

    def compare_structure(self, previous_path: Path, current_path: Path) -> Dict[str, Any]:
        """
        Compare the structure of two PDFs.

        Args:
            previous_path: Path to the previous version
            current_path: Path to the current version

        Returns:
            Dictionary with both structures and their differences
        """
        previous = self.extract_structure(previous_path)
        current = self.extract_structure(current_path)

        comparison = {
            "previous": previous,
            "current": current,
            "differences": {
                "page_count_diff": current["pages"] - previous["pages"],
                "word_count_diff": current["words"] - previous["words"],
                "images_changed": previous["has_images"] != current["has_images"],
                "tables_changed": previous["has_tables"] != current["has_tables"],
            }
        }

        logger.info(
            "pdf_structure_comparison",
            previous=previous_path.name,
            current=current_path.name,
            page_diff=comparison["differences"]["page_count_diff"],
            word_diff=comparison["differences"]["word_count_diff"]
        )

        return comparison

    def cleanup_temp_files(self, file_paths: List[Path]) -> None:
        """
        Clean up temporary files.

        Args:
            file_paths: List of file paths to delete
        """
        if not self.settings.cleanup_temp_files:
            logger.debug("cleanup_disabled")
            return

        for file_path in file_paths:
            try:
                if file_path.is_file():
                    file_path.unlink()
                elif file_path.is_dir():
                    shutil.rmtree(file_path)
                logger.debug("temp_file_deleted", path=str(file_path))
            except OSError as e:
                logger.warning(
                    "temp_file_cleanup_failed",
                    path=str(file_path),
                    error=str(e)
                )
