# readlog/factory.py
from typing import Optional

from readlog.config_loader import EngineConfig, load_engine_config
from readlog.service import ReadableService
from readlog.storage.mapper import RecordMapper
from readlog.storage.store import ReadableStore


def build_service(
    store:       ReadableStore,
    config_path: Optional[str]          = None,
    config:      Optional[EngineConfig] = None,
) -> ReadableService:
    """
    Ensambla el ReadableService con sus dependencias.
    Punto de entrada único para el CLI, la capa de repositorio y los
    tests de integración. Un config ya cargado evita releer el YAML.
    """
    config = config or load_engine_config(config_path)
    return ReadableService(
        store  = store,
        mapper = build_mapper(config),
        config = config,
    )


def build_mapper(config: EngineConfig) -> RecordMapper:
    return RecordMapper(default_priority=config.default_priority)
