"""
Text extraction for uploaded files.

Only the extracted text is kept; the uploaded binary is discarded.
"""

import os
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, List

from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from loguru import logger
from pypdf import PdfReader

from app.utils.exceptions import UnsupportedFileTypeError, ValidationError


@dataclass
class ParsedFile:
    title: str
    content: str
    file_type: str
    file_size: int


def _clean_text(text: str) -> str:
    text = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", text)
    text = re.sub(r"\r\n|\r", "\n", text)
    text = re.sub(r"\n\s*\n\s*\n+", "\n\n", text)
    return text.strip()


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    logger.info(f"Extracted text from {len(pages)} PDF pages")
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = DocxDocument(BytesIO(data))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                paragraphs.append(" | ".join(cells))
    return "\n\n".join(paragraphs)


def _extract_html(data: bytes) -> str:
    soup = BeautifulSoup(data, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(separator="\n")


def _extract_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    "pdf": _extract_pdf,
    "docx": _extract_docx,
    "html": _extract_html,
    "htm": _extract_html,
    "txt": _extract_text,
    "md": _extract_text,
    "markdown": _extract_text,
    "csv": _extract_text,
    "json": _extract_text,
}


def get_supported_formats() -> List[str]:
    return sorted(EXTRACTORS)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower().lstrip(".")


def is_supported_format(filename: str) -> bool:
    return file_extension(filename) in EXTRACTORS


def parse_file(filename: str, data: bytes) -> ParsedFile:
    """
    Extract text from an uploaded file.

    Raises:
        UnsupportedFileTypeError: The extension has no extractor.
        ValidationError: The file could not be read as its declared type.
    """
    extension = file_extension(filename)
    extractor = EXTRACTORS.get(extension)
    if extractor is None:
        raise UnsupportedFileTypeError(filename or "(unnamed)")

    try:
        text = extractor(data)
    except Exception as e:
        logger.warning(f"Failed to extract text from {filename}: {e}")
        raise ValidationError(f"Could not read {extension} file", field="file")

    title = os.path.splitext(os.path.basename(filename))[0] or "Untitled"
    return ParsedFile(
        title=title,
        content=_clean_text(text),
        file_type=extension,
        file_size=len(data),
    )
