import re
from dataclasses import dataclass
from enum import Enum


class ExportKind(str, Enum):
    PAGE = "page"
    CHAPTER = "chapter"
    BOOK = "book"


class ExportFormat(str, Enum):
    PDF = "pdf"
    MARKDOWN = "markdown"

    @property
    def extension(self) -> str:
        return "pdf" if self == ExportFormat.PDF else "md"

    @property
    def media_type(self) -> str:
        return "application/pdf" if self == ExportFormat.PDF else "text/markdown; charset=utf-8"


@dataclass(frozen=True)
class ExportFile:
    """Готовый файл экспорта"""
    filename: str
    media_type: str
    body: bytes

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def sanitize_filename(name: str) -> str:
    """Имя файла: латиница, цифры, "-" и "_", пробелы в "-", нижний регистр"""
    sanitized = re.sub(r"[^a-zA-Z0-9\s\-_]", "", name or "")
    sanitized = re.sub(r"\s+", "-", sanitized).lower()[:100]
    return sanitized or "export"


def export_filename(name: str, export_format: ExportFormat) -> str:
    return f"{sanitize_filename(name)}.{export_format.extension}"
