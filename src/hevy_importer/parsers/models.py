"""
Document Models

Typed representation of an input document as handed to the extraction step.
A workbook is reduced to named sheets of string cells; anything else travels
as an opaque binary payload.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Sheet(BaseModel):
    """One worksheet: ordered rows of ordered cell values (header row first)"""
    name: str
    rows: List[List[str]] = Field(default_factory=list)

    @property
    def header(self) -> List[str]:
        return self.rows[0] if self.rows else []

    def records(self) -> List[Dict[str, str]]:
        """Data rows keyed by header cell (blank headers get positional names)"""
        header = [h or f"Column {i + 1}" for i, h in enumerate(self.header)]
        records = []
        for row in self.rows[1:]:
            record = {}
            for idx, value in enumerate(row):
                key = header[idx] if idx < len(header) else f"Column {idx + 1}"
                record[key] = value
            records.append(record)
        return records


class WorkbookDocument(BaseModel):
    """Spreadsheet input (one or more named sheets)"""
    kind: Literal["workbook"] = "workbook"
    filename: str
    sheets: List[Sheet] = Field(default_factory=list)

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]


class BinaryDocument(BaseModel):
    """Opaque document payload (e.g. a PDF) embedded as-is"""
    kind: Literal["binary"] = "binary"
    filename: str
    media_type: str = "application/pdf"
    content: bytes


SourceDocument = Annotated[
    Union[WorkbookDocument, BinaryDocument],
    Field(discriminator="kind"),
]


class SampledSheet(BaseModel):
    """A sheet after size-bounding; `was_sampled` marks lossy output"""
    name: str
    data: List[List[str]] = Field(default_factory=list)
    formatted: List[Dict[str, str]] = Field(default_factory=list)
    original_row_count: int = 0
    was_sampled: bool = False


class ExtractionInput(BaseModel):
    """What the extraction client submits for one document"""
    document: SourceDocument
    sheets: List[SampledSheet] = Field(default_factory=list)
    was_sampled: bool = False

    def sheet_payload(self) -> Dict[str, Any]:
        """JSON-ready sheet data embedded into the extraction prompt"""
        return {
            "sheetNames": [sheet.name for sheet in self.sheets],
            "sheets": {
                sheet.name: {
                    "name": sheet.name,
                    "data": sheet.data,
                    "formatted": sheet.formatted,
                    "originalRowCount": sheet.original_row_count,
                    "wasSampled": sheet.was_sampled,
                }
                for sheet in self.sheets
            },
        }


class FileInfo(BaseModel):
    """Information about the file being parsed"""
    filename: str
    extension: str
    size_bytes: int = 0
    content_type: Optional[str] = None
