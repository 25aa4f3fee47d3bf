# chapters/normalizer.py
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from readlog.chapters.models import ChapterMetadata, StoredChapterFields
from readlog.numeric import clean_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChapterRule:
    """
    Una regla de precedencia: predicado + transformación, ambos puros.
    El pipeline las evalúa en orden y se queda con la primera que aplica.
    """
    name:    str
    applies: Callable[[StoredChapterFields], bool]
    resolve: Callable[[StoredChapterFields], ChapterMetadata]


def _complete_value(fields: StoredChapterFields) -> Optional[bool]:
    if fields.complete_flag is None:
        return None
    return bool(fields.complete_flag)


# ------------------------------------------------------------------
# Reglas de lectura
# ------------------------------------------------------------------

def _both_known(fields: StoredChapterFields) -> ChapterMetadata:
    return ChapterMetadata(fields.available, fields.total, _complete_value(fields))


def _legacy_only(fields: StoredChapterFields) -> ChapterMetadata:
    # Obra completa: el conteo viejo es a la vez publicado y total
    if fields.is_complete:
        return ChapterMetadata(fields.legacy_count, fields.legacy_count, True)
    return ChapterMetadata(fields.legacy_count, None, _complete_value(fields))


def _total_only(fields: StoredChapterFields) -> ChapterMetadata:
    if fields.is_complete:
        return ChapterMetadata(fields.total, fields.total, True)
    # Un escritor anterior duplicaba el valor "actual" en total.
    # Heurística de compatibilidad: solo cubre los datos observados.
    if fields.legacy_count == fields.total:
        return ChapterMetadata(fields.legacy_count, None, _complete_value(fields))
    return ChapterMetadata(None, fields.total, _complete_value(fields))


def _available_only_complete(fields: StoredChapterFields) -> ChapterMetadata:
    return ChapterMetadata(fields.available, fields.available, True)


def _as_is(fields: StoredChapterFields) -> ChapterMetadata:
    return ChapterMetadata(fields.available, fields.total, _complete_value(fields))


DEFAULT_RULES: tuple[ChapterRule, ...] = (
    ChapterRule(
        name    = "both_known",
        applies = lambda f: f.available is not None and f.total is not None,
        resolve = _both_known,
    ),
    ChapterRule(
        name    = "legacy_only",
        applies = lambda f: f.available is None and f.total is None and f.legacy_count is not None,
        resolve = _legacy_only,
    ),
    ChapterRule(
        name    = "total_only",
        applies = lambda f: f.total is not None and f.available is None,
        resolve = _total_only,
    ),
    ChapterRule(
        name    = "available_only_complete",
        applies = lambda f: f.available is not None and f.total is None and f.is_complete,
        resolve = _available_only_complete,
    ),
)

_FALLBACK = ChapterRule(name="as_is", applies=lambda f: True, resolve=_as_is)


class ChapterMetadataNormalizer:
    """
    Resuelve los campos de capítulos heredados/ambiguos a la tripleta
    canónica (available, total, complete), en lectura y en escritura.

    Nunca lanza: una fila que no encaja en ninguna regla se acepta tal cual,
    con available/total posiblemente desconocidos ("?/?").
    """

    def __init__(self, rules: tuple[ChapterRule, ...] = DEFAULT_RULES):
        self._rules = tuple(rules) + (_FALLBACK,)

    @property
    def rules(self) -> tuple[ChapterRule, ...]:
        return self._rules

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def normalize_on_read(self, fields: StoredChapterFields) -> ChapterMetadata:
        cleaned = _clean(fields)
        for rule in self._rules:
            if rule.applies(cleaned):
                logger.debug("Regla de capítulos '%s' para %s", rule.name, cleaned)
                return rule.resolve(cleaned)
        # inalcanzable: _FALLBACK siempre aplica
        return _as_is(cleaned)

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def normalize_on_write(
        self,
        metadata:          ChapterMetadata,
        legacy_count_hint: Optional[int] = None,
    ) -> StoredChapterFields:
        """
        Inverso de normalize_on_read.
        Una obra completa con un solo lado conocido se escribe X/X.
        El campo legacy guarda el "mejor número tipo total" para lectores viejos.
        """
        available = clean_count(metadata.available)
        total     = clean_count(metadata.total)
        complete  = metadata.complete

        if complete:
            if total is None and available is not None:
                total = available
            elif available is None and total is not None:
                available = total

        legacy = self.legacy_count_for(available, total, clean_count(legacy_count_hint))

        return StoredChapterFields(
            legacy_count  = legacy,
            available     = available,
            total         = total,
            complete_flag = None if complete is None else int(bool(complete)),
        )

    @staticmethod
    def legacy_count_for(
        available: Optional[int],
        total:     Optional[int],
        hint:      Optional[int],
    ) -> Optional[int]:
        """
        total ?? hint ?? available.

        Excepción: con available desconocido y total conocido, el legacy no
        puede repetir total: al releer, legacy == total se interpreta como
        "solo publicado" y la fila cambiaría de significado.
        """
        if total is not None:
            if available is None:
                return hint if hint != total else None
            return total
        if hint is not None:
            return hint
        return available


def _clean(fields: StoredChapterFields) -> StoredChapterFields:
    return StoredChapterFields(
        legacy_count  = clean_count(fields.legacy_count),
        available     = clean_count(fields.available),
        total         = clean_count(fields.total),
        complete_flag = fields.complete_flag,
    )


_default = ChapterMetadataNormalizer()


def normalize_on_read(fields: StoredChapterFields) -> ChapterMetadata:
    return _default.normalize_on_read(fields)


def normalize_on_write(
    metadata:          ChapterMetadata,
    legacy_count_hint: Optional[int] = None,
) -> StoredChapterFields:
    return _default.normalize_on_write(metadata, legacy_count_hint)
