# readlog/ingest.py
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from readlog.config_loader import EngineConfig
from readlog.numeric import clean_count
from readlog.records.models import BookRecord, BookSource, Rating, SerialRecord

logger = logging.getLogger(__name__)

_WORK_ID_RE = re.compile(r"/works/(\d+)")

_RATING_PREFIXES: tuple[tuple[str, Rating], ...] = (
    ("general",   Rating.GENERAL),
    ("teen",      Rating.TEEN),
    ("mature",    Rating.MATURE),
    ("explicit",  Rating.EXPLICIT),
    ("not rated", Rating.NOT_RATED),
)


# ------------------------------------------------------------------
# Payloads de los colaboradores de metadatos
# ------------------------------------------------------------------

@dataclass
class FanficMetadata:
    """
    Lo que devuelve el fetcher del archivo de fanfics.
    chapters viene crudo, tal cual lo muestra la página: "3/10", "3/?".
    """
    title:         Optional[str]  = None
    author:        Optional[str]  = None
    rating:        Optional[str]  = None
    fandoms:       list[str]      = field(default_factory=list)
    relationships: list[str]      = field(default_factory=list)
    characters:    list[str]      = field(default_factory=list)
    tags:          list[str]      = field(default_factory=list)
    warnings:      list[str]      = field(default_factory=list)
    word_count:    Optional[int]  = None
    chapters:      Optional[str]  = None
    complete:      Optional[bool] = None
    summary:       Optional[str]  = None


@dataclass
class BookCandidate:
    """Un resultado del buscador de libros, con su puntuación de ranking."""
    title:       Optional[str] = None
    authors:     list[str]     = field(default_factory=list)
    page_count:  Optional[int] = None
    genres:      list[str]     = field(default_factory=list)
    description: Optional[str] = None
    cover_url:   Optional[str] = None
    score:       float         = 0.0
    source:      Optional[BookSource] = None
    source_id:   Optional[str] = None


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------

def parse_chapter_string(text: Optional[str]) -> tuple[Optional[int], Optional[int]]:
    """
    "3/10" → (3, 10); "3/?" → (3, None); basura → (None, None).
    El lado derecho "?" es el total desconocido, nunca 0.
    """
    if not text:
        return None, None
    if "/" not in text:
        return clean_count(text.strip()), None

    left, _, right = text.partition("/")
    right = right.strip()
    available = clean_count(left.strip())
    total     = None if right in ("", "?") else clean_count(right)
    return available, total


def parse_rating(text: Optional[str]) -> Optional[Rating]:
    """"Teen And Up Audiences" → Rating.TEEN."""
    if not text:
        return None
    normalized = text.strip().lower()
    for prefix, rating in _RATING_PREFIXES:
        if normalized.startswith(prefix):
            return rating
    try:
        return Rating(text.strip().upper())
    except ValueError:
        logger.debug("Rating no reconocido: %r", text)
        return None


def extract_work_id(url: str) -> Optional[str]:
    match = _WORK_ID_RE.search(url or "")
    return match.group(1) if match else None


# ------------------------------------------------------------------
# Borradores para ReadableService.insert
# ------------------------------------------------------------------

def serial_draft_from_metadata(
    metadata: FanficMetadata,
    url:      str,
    config:   Optional[EngineConfig] = None,
) -> SerialRecord:
    """
    Construye un borrador de serial a partir del fetcher.
    Los capítulos pasan por las mismas reglas que una fila heredada:
    aquí solo se separa "X/Y" en sus dos lados.
    """
    config = config or EngineConfig()
    available, total = parse_chapter_string(metadata.chapters)

    complete = metadata.complete
    if complete is None and available is not None and total is not None:
        complete = available == total

    return SerialRecord(
        title           = (metadata.title or "").strip() or "Untitled",
        author          = (metadata.author or "").strip() or "Anonymous",
        description     = metadata.summary,
        work_id         = extract_work_id(url) or "",
        url             = url,
        rating          = parse_rating(metadata.rating),
        fandoms         = list(metadata.fandoms),
        relationships   = list(metadata.relationships),
        characters      = list(metadata.characters),
        archive_tags    = list(metadata.tags),
        warnings        = list(metadata.warnings),
        word_count      = clean_count(metadata.word_count),
        available_units = available,
        total_units     = total,
        complete        = complete,
        priority        = config.default_priority,
    )


def best_candidate(candidates: Iterable[BookCandidate]) -> Optional[BookCandidate]:
    """El de mayor score; en empate, el primero que llegó."""
    best: Optional[BookCandidate] = None
    for candidate in candidates:
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def book_draft_from_candidate(
    candidate: BookCandidate,
    config:    Optional[EngineConfig] = None,
) -> BookRecord:
    config = config or EngineConfig()
    return BookRecord(
        title       = (candidate.title or "").strip() or "Untitled",
        author      = ", ".join(a.strip() for a in candidate.authors if a and a.strip()) or "Unknown",
        description = candidate.description,
        page_count  = clean_count(candidate.page_count),
        genres      = list(candidate.genres),
        source      = candidate.source or config.book_source,
        source_id   = candidate.source_id,
        priority    = config.default_priority,
    )
