"""Size-bounding of large sheets before they are sent for extraction.

Sampling is lossy: the extraction model only needs the representative
structure of a long sheet, not every row. Every sampled sheet records
``was_sampled`` so callers can tell exact input from summarized input.
"""
import logging
from typing import List, Sequence, TypeVar

from hevy_importer.parsers.models import (
    ExtractionInput,
    SampledSheet,
    Sheet,
    SourceDocument,
    WorkbookDocument,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_UNSAMPLED_ROWS = 100
HEAD_ROWS = 20
TAIL_ROWS = 10
MIDDLE_STRIDE = 10


def sample_rows(rows: Sequence[T]) -> List[T]:
    """
    Bound the number of rows sent for extraction.

    Sheets of up to 100 rows are returned whole. Larger sheets keep the first
    20 rows (headers and early data), every 10th row of the middle and the last
    10 rows, in original order.
    """
    if len(rows) <= MAX_UNSAMPLED_ROWS:
        return list(rows)

    tail_start = len(rows) - TAIL_ROWS
    sampled = list(rows[:HEAD_ROWS])
    sampled.extend(rows[i] for i in range(HEAD_ROWS, tail_start, MIDDLE_STRIDE))
    sampled.extend(rows[tail_start:])
    return sampled


def sample_sheet(sheet: Sheet) -> SampledSheet:
    data = sample_rows(sheet.rows)
    formatted = sample_rows(sheet.records())
    was_sampled = len(data) < len(sheet.rows)
    if was_sampled:
        logger.warning(
            f"Sheet '{sheet.name}' has {len(sheet.rows)} rows; sending a sample of {len(data)}"
        )
    return SampledSheet(
        name=sheet.name,
        data=data,
        formatted=formatted,
        original_row_count=len(sheet.rows),
        was_sampled=was_sampled,
    )


def prepare_document(document: SourceDocument) -> ExtractionInput:
    """Turn a parsed document into the extraction input, sampling large sheets."""
    if not isinstance(document, WorkbookDocument):
        return ExtractionInput(document=document)

    sheets = [sample_sheet(sheet) for sheet in document.sheets]
    return ExtractionInput(
        document=document,
        sheets=sheets,
        was_sampled=any(sheet.was_sampled for sheet in sheets),
    )
