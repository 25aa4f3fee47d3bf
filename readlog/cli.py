# readlog/cli.py
import json
import logging
import sys
from dataclasses import asdict, fields, replace
from datetime import datetime
from enum import Enum
from pathlib import Path

import click
from dotenv import load_dotenv

from readlog.chapters.display import format_chapter_fraction, format_unit_line
from readlog.config_loader import ConfigError, EngineConfig, load_engine_config
from readlog.factory import build_service
from readlog.ingest import (
    BookCandidate, FanficMetadata,
    best_candidate, book_draft_from_candidate, serial_draft_from_metadata,
)
from readlog.progress.models import PercentUpdate, TimeUpdate, UnitUpdate
from readlog.records.models import BookSource, SerialRecord, Status
from readlog.service import ReadableService
from readlog.storage.row import StorageRow
from readlog.storage.single_row import SingleRowStore


# Carga .env una sola vez, antes que cualquier otra cosa
load_dotenv()

_STATUS_CHOICE = click.Choice([s.value for s in Status], case_sensitive=False)


# ------------------------------------------------------------------
# Grupo raíz
# ------------------------------------------------------------------

@click.group()
@click.version_option(package_name="readlog")
@click.option(
    "--config", "config_path",
    default = None,
    type    = click.Path(dir_okay=False),
    help    = "Ruta al config.yaml (por defecto ~/.readlog/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log en nivel DEBUG")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """
    readlog — inspección de filas del tracker de lectura.

    Lee un volcado JSON de una fila (cualquier generación del esquema)
    y muestra su forma canónica o el resultado de aplicarle un cambio.
    """
    try:
        config = load_engine_config(config_path)
    except (FileNotFoundError, ConfigError) as e:
        _abort(str(e))

    logging.basicConfig(
        level  = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING),
        format = "%(levelname)s %(name)s: %(message)s",
        stream = sys.stderr,
    )
    ctx.obj = config


# ------------------------------------------------------------------
# readlog inspect
# ------------------------------------------------------------------

@main.command()
@click.argument("row_file", type=click.Path(exists=False))
@click.pass_obj
def inspect(config: EngineConfig, row_file: str):
    """Muestra el registro canónico, los capítulos y el snapshot de progreso."""
    service, _, readable_id = _service_for_row(row_file, config)
    record = service.get(readable_id)

    output = {
        "kind":     record.kind.value,
        "record":   _jsonable(asdict(record)),
        "progress": _jsonable(asdict(service.progress_snapshot(readable_id))),
    }
    if isinstance(record, SerialRecord):
        metadata = service.chapter_metadata(readable_id)
        output["chapters"] = {
            **_jsonable(asdict(metadata)),
            "fraction": format_chapter_fraction(metadata),
            "line":     format_unit_line(record.current_unit, metadata),
        }

    _echo_json(output)


# ------------------------------------------------------------------
# readlog progress
# ------------------------------------------------------------------

@main.command()
@click.argument("row_file", type=click.Path(exists=False))
@click.option("--percent", type=float, default=None, help="Nuevo porcentaje (0-100)")
@click.option("--unit", type=float, default=None, help="Nueva página o capítulo")
@click.option(
    "--time", "time_values",
    type    = (float, float),
    default = None,
    metavar = "CURRENT TOTAL",
    help    = "Posición y duración en segundos",
)
@click.pass_obj
def progress(
    config:      EngineConfig,
    row_file:    str,
    percent:     float | None,
    unit:        float | None,
    time_values: tuple[float, float] | None,
):
    """Aplica una edición de progreso y muestra la fila resultante."""
    given = [v for v in (percent, unit, time_values) if v is not None]
    if len(given) != 1:
        _abort("Indica exactamente una de --percent, --unit o --time.")

    if percent is not None:
        update = PercentUpdate(percent)
    elif unit is not None:
        update = UnitUpdate(unit)
    else:
        update = TimeUpdate(*time_values)

    service, store, readable_id = _service_for_row(row_file, config)
    service.update_progress(readable_id, update)
    if store.writes == 0:
        click.echo("[readlog] El update no aplica a este registro: sin cambios.", err=True)

    _echo_json(store.row.to_mapping())


# ------------------------------------------------------------------
# readlog status
# ------------------------------------------------------------------

@main.command()
@click.argument("row_file", type=click.Path(exists=False))
@click.argument("new_status", type=_STATUS_CHOICE)
@click.pass_obj
def status(config: EngineConfig, row_file: str, new_status: str):
    """Cambia el estado (registrando su fecha) y muestra la fila resultante."""
    service, store, readable_id = _service_for_row(row_file, config)
    service.change_status(readable_id, Status(new_status.lower()))
    _echo_json(store.row.to_mapping())


# ------------------------------------------------------------------
# readlog ingest
# ------------------------------------------------------------------

@main.group()
def ingest():
    """Da de alta un registro a partir del payload de un colaborador de metadatos."""


@ingest.command("serial")
@click.argument("payload_file", type=click.Path(exists=False))
@click.option("--url", required=True, help="URL de la obra en el archivo")
@click.option("--status", "initial_status", type=_STATUS_CHOICE, default=Status.QUEUED.value, show_default=True)
@click.pass_obj
def ingest_serial(config: EngineConfig, payload_file: str, url: str, initial_status: str):
    """Convierte la metadata del fetcher de fanfics en una fila nueva."""
    payload = _load_json(payload_file)
    if not isinstance(payload, dict):
        _abort(f"{payload_file} debe contener un objeto JSON con la metadata")

    store   = SingleRowStore()
    service = build_service(store, config=config)
    draft   = serial_draft_from_metadata(
        FanficMetadata(**_known_fields(FanficMetadata, payload)), url, service.config,
    )
    service.insert(replace(draft, status=Status(initial_status.lower())))
    _echo_json(store.row.to_mapping())


@ingest.command("book")
@click.argument("payload_file", type=click.Path(exists=False))
@click.option("--status", "initial_status", type=_STATUS_CHOICE, default=Status.QUEUED.value, show_default=True)
@click.pass_obj
def ingest_book(config: EngineConfig, payload_file: str, initial_status: str):
    """Elige el mejor candidato del buscador de libros y lo da de alta."""
    payload = _load_json(payload_file)
    entries = payload if isinstance(payload, list) else [payload]
    if not entries or not all(isinstance(e, dict) for e in entries):
        _abort(f"{payload_file} debe contener un candidato o una lista de candidatos")

    candidate = best_candidate(_book_candidate(entry) for entry in entries)

    store   = SingleRowStore()
    service = build_service(store, config=config)
    draft   = book_draft_from_candidate(candidate, service.config)
    service.insert(replace(draft, status=Status(initial_status.lower())))
    _echo_json(store.row.to_mapping())


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _service_for_row(row_file: str, config: EngineConfig) -> tuple[ReadableService, SingleRowStore, str]:
    """Carga la fila en un almacén de una sola fila y ensambla el servicio encima."""
    data = _load_json(row_file)
    if not isinstance(data, dict):
        _abort(f"{row_file} debe contener un objeto JSON (una fila)")

    row   = StorageRow.from_mapping(data)
    store = SingleRowStore(row)
    return build_service(store, config=config), store, row.id


def _load_json(path_str: str):
    path = Path(path_str)
    if not path.exists():
        _abort(f"Archivo no encontrado: {path_str}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        _abort(f"{path_str} no es JSON válido: {e}")


def _known_fields(cls, payload: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in payload.items() if k in names}


def _book_candidate(entry: dict) -> BookCandidate:
    values = _known_fields(BookCandidate, entry)
    if values.get("source") is not None:
        try:
            values["source"] = BookSource(values["source"])
        except ValueError:
            _abort(f"Source de libro desconocido: {values['source']}")
    return BookCandidate(**values)


def _jsonable(value):
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


def _abort(message: str) -> None:
    """Error de validación: culpa del usuario."""
    click.echo(click.style(f"[readlog] Error: {message}", fg="red"), err=True)
    sys.exit(1)
