# chapters/__init__.py
from readlog.chapters.models import ChapterMetadata, StoredChapterFields
from readlog.chapters.normalizer import (
    ChapterMetadataNormalizer, ChapterRule, normalize_on_read, normalize_on_write,
)
from readlog.chapters.display import format_chapter_fraction, format_unit_line

__all__ = [
    "ChapterMetadata", "StoredChapterFields",
    "ChapterMetadataNormalizer", "ChapterRule",
    "normalize_on_read", "normalize_on_write",
    "format_chapter_fraction", "format_unit_line",
]
