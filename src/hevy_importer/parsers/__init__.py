"""Document parsers: turn input files into typed documents for extraction."""
from pathlib import Path
from typing import List, Union

from hevy_importer.errors import DocumentError

from .base import BaseParser
from .excel_parser import ExcelParser
from .models import (
    BinaryDocument,
    ExtractionInput,
    FileInfo,
    SampledSheet,
    Sheet,
    SourceDocument,
    WorkbookDocument,
)
from .pdf_parser import PDFParser

_PARSERS: List[BaseParser] = [ExcelParser(), PDFParser()]


def get_parser(file_info: FileInfo) -> BaseParser:
    """Return the parser for a file, or raise DocumentError for unsupported types."""
    for parser in _PARSERS:
        if parser.can_parse(file_info):
            return parser
    raise DocumentError(
        f"Unsupported file type '{file_info.extension}' for {file_info.filename}. "
        "Use an Excel workbook (.xlsx) or a PDF."
    )


def load_document(path: Union[str, Path]) -> SourceDocument:
    """Read a file from disk and reduce it to a typed document."""
    path = Path(path)
    if not path.is_file():
        raise DocumentError(f"File not found: {path}")

    content = path.read_bytes()
    file_info = BaseParser.file_info_for(path, size_bytes=len(content))
    return get_parser(file_info).parse(content, file_info)


__all__ = [
    "BaseParser",
    "BinaryDocument",
    "ExcelParser",
    "ExtractionInput",
    "FileInfo",
    "PDFParser",
    "SampledSheet",
    "Sheet",
    "SourceDocument",
    "WorkbookDocument",
    "get_parser",
    "load_document",
]
