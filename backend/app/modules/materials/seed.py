"""YAML-based default materials catalog loader.

Reads the bundled (or configured) materials YAML and returns raw records
suitable for ``MaterialsCatalog.import_batch``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_SEED_RELATIVE = Path("data/materials.yaml")


def load_seed_materials(yaml_path: str | Path | None = None) -> list[dict[str, Any]]:
    """Load default material records from YAML.

    Resolution order: explicit *yaml_path*, ``materials_seed_path`` setting,
    then the packaged ``data/materials.yaml``. Missing or malformed files
    yield an empty list.
    """
    path = _resolve_path(yaml_path)

    if not path.is_file():
        logger.warning("materials_seed_not_found", path=str(path))
        return []

    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        logger.warning("invalid_materials_seed", path=str(path), error=str(exc))
        return []

    if not isinstance(data, dict):
        logger.warning("invalid_materials_seed", path=str(path))
        return []

    raw_materials = data.get("materials", [])
    if not isinstance(raw_materials, list):
        logger.warning("invalid_materials_list", path=str(path))
        return []

    records = [dict(raw) for raw in raw_materials if isinstance(raw, dict)]

    logger.info(
        "materials_seed_loaded",
        version=str(data.get("version", "0.0")),
        material_count=len(records),
        path=path.name,
    )
    return records


def _resolve_path(yaml_path: str | Path | None) -> Path:
    if yaml_path is not None:
        return Path(yaml_path)

    override = get_settings().materials_seed_path
    if override:
        return Path(override).expanduser()

    return (Path(__file__).resolve().parent / _DEFAULT_SEED_RELATIVE).resolve()
