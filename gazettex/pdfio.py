"""
PDF I/O utilities for Gazette Extract.
"""

import concurrent.futures
import os
import re
import threading
from typing import List

import pdfplumber
import pytesseract

from gazettex.config import Config
from gazettex.log import get_logger
from gazettex.model import ParseError, ParseTimeoutError

logger = get_logger(__name__)

WHITESPACE_REGEX = re.compile(r"\s+")
EXTRACT_THREAD_NAME = "gazettex-pdf-extract"


def extract_text_from_pdf(path: str, cfg: Config) -> str:
    """
    Extract the normalized text of a gazette PDF within the configured time budget.

    Pages are read on a daemon thread. After a timeout the thread is
    abandoned, not stopped: it keeps running until pdfplumber returns, but
    it does not hold up interpreter exit.

    Args:
        path: Path to the PDF file
        cfg: Application configuration

    Returns:
        Whitespace-collapsed text of the whole document
    """
    timeout = cfg.input.parse_timeout_seconds
    logger.info(f"Extracting text from {path} (budget {timeout:.0f}s)")

    future = concurrent.futures.Future()

    def worker():
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(read_pdf_pages(path, cfg))
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=worker, name=EXTRACT_THREAD_NAME, daemon=True).start()

    try:
        pages = future.result(timeout=timeout)
    except concurrent.futures.TimeoutError as e:
        logger.error(f"Text extraction from {path} exceeded {timeout}s")
        raise ParseTimeoutError(f"Text extraction from {path} timed out after {timeout}s") from e
    except Exception as e:
        logger.error(f"Error extracting text from {path}: {e}")
        raise ParseError(f"Error extracting text from {path}: {e}") from e

    text = normalize_text(" ".join(pages))
    logger.info(f"Extracted {len(text)} characters from {len(pages)} pages")
    return text


def read_pdf_pages(path: str, cfg: Config) -> List[str]:
    """
    Read the raw text of every page of a PDF.

    Args:
        path: Path to the PDF file
        cfg: Application configuration

    Returns:
        One string per page
    """
    pages = []

    with pdfplumber.open(path) as pdf:
        for page_num, page in enumerate(pdf.pages, 1):
            logger.debug(f"Processing page {page_num} of {len(pdf.pages)}")

            text = extract_text_from_page(page)

            if (not text or text.isspace()) and cfg.input.ocr_fallback:
                logger.info(f"No text found on page {page_num}, using OCR fallback")
                text = apply_ocr_to_page(page, cfg.input.ocr_lang)

            pages.append(text)

    return pages


def extract_text_from_page(page) -> str:
    """
    Extract text from a PDF page.

    Args:
        page: PDF page object

    Returns:
        Extracted text as a string
    """
    return page.extract_text() or ""


def apply_ocr_to_page(page, lang: str) -> str:
    """
    Apply OCR to a PDF page.

    Args:
        page: PDF page object
        lang: OCR language

    Returns:
        Extracted text as a string
    """
    try:
        image = page.to_image(resolution=300).original
        return pytesseract.image_to_string(image, lang=lang)
    except Exception as e:
        logger.error(f"Error applying OCR: {e}")
        return ""


def normalize_text(text: str) -> str:
    """
    Collapse runs of whitespace and trim.

    Args:
        text: Raw text

    Returns:
        Normalized text
    """
    return WHITESPACE_REGEX.sub(" ", text or "").strip()


def remove_upload(path: str) -> bool:
    """
    Delete a temporary upload. Failures are logged, never raised.

    Args:
        path: Path to the uploaded file

    Returns:
        True if the file was removed
    """
    try:
        os.remove(path)
        logger.debug(f"Removed temporary upload {path}")
        return True
    except OSError as e:
        logger.warning(f"Failed to delete temp file {path}: {e}")
        return False
