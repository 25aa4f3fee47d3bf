# readlog/config_loader.py
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from readlog.records.models import MAX_PRIORITY, MIN_PRIORITY, BookSource

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path.home() / ".readlog" / "config.yaml"


class ConfigError(Exception):
    """El YAML existe pero no tiene la forma esperada."""
    pass


@dataclass
class EngineConfig:
    """
    Configuración del motor.
    Se carga desde ~/.readlog/config.yaml (o READLOG_CONFIG_PATH).
    """
    default_priority: int        = 3
    log_level:        str        = "WARNING"
    book_source:      BookSource = BookSource.MANUAL


def load_engine_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Carga la configuración desde YAML.
    Resuelve variables de entorno (${VAR}) en los valores de texto.

    Un path explícito que no existe es un error; el archivo por defecto
    es opcional y su ausencia devuelve los valores por defecto.
    """
    explicit = config_path or os.environ.get("READLOG_CONFIG_PATH")
    path     = Path(explicit) if explicit else _DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Config no encontrada en {path}")
        logger.debug("Sin config en %s — usando valores por defecto", path)
        return EngineConfig()

    with path.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: se esperaba un mapping en la raíz")

    engine = raw.get("engine", raw)
    if not isinstance(engine, dict):
        raise ConfigError(f"{path}: 'engine' debe ser un mapping")

    defaults = EngineConfig()
    try:
        priority = int(_resolve_env(engine.get("default_priority", defaults.default_priority)))
        source   = BookSource(_resolve_env(engine.get("book_source", defaults.book_source.value)))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{path}: {e}") from e

    if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise ConfigError(
            f"{path}: default_priority debe estar entre {MIN_PRIORITY} y {MAX_PRIORITY}"
        )

    return EngineConfig(
        default_priority = priority,
        log_level        = str(_resolve_env(engine.get("log_level", defaults.log_level))).upper(),
        book_source      = source,
    )


def _resolve_env(value):
    """Expande ${VAR_NAME} desde el entorno. Otros valores pasan tal cual."""
    if not isinstance(value, str) or not value.startswith("${"):
        return value
    var_name = value.strip("${}").strip()
    return os.environ.get(var_name)
