"""
Base Parser

Abstract base class for document parsers.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from .models import FileInfo, SourceDocument

logger = logging.getLogger(__name__)


class BaseParser(ABC):
    """Abstract base class for document parsers"""

    EXTENSIONS: List[str] = []

    @abstractmethod
    def parse(self, content: bytes, file_info: FileInfo) -> SourceDocument:
        """
        Reduce raw file bytes to a typed document.

        Args:
            content: Raw file bytes
            file_info: Information about the file

        Returns:
            WorkbookDocument or BinaryDocument

        Raises:
            DocumentError: If the content cannot be read
        """
        pass

    def can_parse(self, file_info: FileInfo) -> bool:
        """Check if this parser can handle the given file"""
        return file_info.extension.lower() in self.EXTENSIONS

    @staticmethod
    def file_info_for(path: Union[str, Path], size_bytes: int = 0) -> FileInfo:
        path = Path(path)
        return FileInfo(
            filename=path.name,
            extension=path.suffix.lower(),
            size_bytes=size_bytes,
        )
