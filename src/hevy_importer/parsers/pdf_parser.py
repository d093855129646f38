"""
PDF Parser

PDFs are not parsed locally; the bytes are embedded into the extraction
request and the model reads the document itself.
"""

import logging

from hevy_importer.errors import DocumentError

from .base import BaseParser
from .models import BinaryDocument, FileInfo

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


class PDFParser(BaseParser):
    """Parser for PDF files"""

    EXTENSIONS = ['.pdf']

    def parse(self, content: bytes, file_info: FileInfo) -> BinaryDocument:
        if not content.startswith(PDF_MAGIC):
            raise DocumentError(f"{file_info.filename} is not a valid PDF file")

        logger.info(f"Read PDF {file_info.filename} ({len(content)} bytes)")
        return BinaryDocument(
            filename=file_info.filename,
            media_type="application/pdf",
            content=content,
        )
