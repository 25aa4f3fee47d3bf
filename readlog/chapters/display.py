# chapters/display.py
from typing import Optional

from readlog.chapters.models import ChapterMetadata

UNKNOWN = "?"


def format_chapter_fraction(metadata: ChapterMetadata) -> str:
    """"12/?", "?/20", "?/?", el mismo formato que muestra el archivo."""
    left  = str(metadata.available) if metadata.available is not None else UNKNOWN
    right = str(metadata.total) if metadata.total is not None else UNKNOWN
    return f"{left}/{right}"


def format_unit_line(current: Optional[int], metadata: ChapterMetadata) -> Optional[str]:
    """
    Línea corta para listados: "Ch 5 • 12/?".
    Devuelve None si no hay nada que mostrar.
    """
    fraction = None if metadata.is_unknown else format_chapter_fraction(metadata)

    if current is not None and fraction:
        return f"Ch {current} • {fraction}"
    if current is not None:
        return f"Ch {current}"
    if fraction:
        return f"Chapters {fraction}"
    return None
