"""Materials catalog with an in-process read cache.

The catalog owns a snapshot of every material held by its store. The
snapshot is an immutable tuple that is swapped as a whole, so readers
never see a half-populated catalog. Writes go to the store first and only
touch the snapshot once the store has accepted them. Writes and refreshes
hold the same lock, so a refresh never overwrites a concurrent write.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from app.core.logging import get_logger
from app.modules.materials.schemas import CatalogStats, ImportResult, Material
from app.modules.materials.seed import load_seed_materials
from app.modules.materials.store import MaterialStore, MaterialStoreError
from app.modules.materials.validation import (
    MaterialValidationError,
    calculate_material_confidence,
    ensure_valid,
    is_importable,
)

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 5 * 60


class MaterialNotFoundError(ValueError):
    """Raised when an operation targets a material id the catalog does not hold."""


class MaterialsCatalog:
    """Indexed, cached view over a ``MaterialStore``.

    Usage::

        catalog = MaterialsCatalog(InMemoryMaterialStore(), ttl_seconds=300)
        material = await catalog.find_material("stainless steel")
        confidence = catalog.compute_confidence("stainless steel", material)
    """

    def __init__(
        self,
        store: MaterialStore,
        *,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._ttl = ttl_seconds
        self._clock = clock
        self._materials: tuple[Material, ...] = ()
        self._loaded_at: float | None = None
        self._refresh_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Reload the whole catalog from the store.

        Raises:
            MaterialStoreError: If the store cannot be read. The previous
                snapshot is kept.
        """
        async with self._refresh_lock:
            materials = await self._store.list_all()
            self._materials = tuple(materials)
            self._loaded_at = self._clock()
        logger.info("materials_cache_refreshed", material_count=len(materials))

    def _is_stale(self) -> bool:
        if self._loaded_at is None or not self._materials:
            return True
        return self._clock() - self._loaded_at > self._ttl

    async def _snapshot(self) -> tuple[Material, ...]:
        if not self._is_stale():
            return self._materials

        # Another reader is already refreshing: serve what we have.
        if self._refresh_lock.locked() and self._loaded_at is not None:
            return self._materials

        try:
            await self.refresh()
        except MaterialStoreError:
            if self._loaded_at is None:
                raise
            logger.warning(
                "materials_cache_refresh_failed",
                material_count=len(self._materials),
                exc_info=True,
            )
        return self._materials

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_all(self) -> list[Material]:
        return list(await self._snapshot())

    async def export_all(self) -> list[Material]:
        """Return every material, for JSON export."""
        return list(await self._snapshot())

    async def get_by_id(self, material_id: str) -> Material | None:
        return next((m for m in await self._snapshot() if m.id == material_id), None)

    async def get_by_category(self, category: str) -> list[Material]:
        wanted = category.lower()
        return [m for m in await self._snapshot() if m.category.lower() == wanted]

    async def find_material(self, name: str) -> Material | None:
        """Find the first material matching *name*, in catalog order.

        Tiers, each scanned over the whole catalog before the next one:
        exact name, exact alias, name containment (either direction), alias
        containment (either direction), then any shared word fragment.
        """
        if not name or not name.strip():
            return None

        materials = await self._snapshot()
        term = name.strip().lower()

        for material in materials:
            if material.name.lower() == term:
                return material

        for material in materials:
            if any(alias.lower() == term for alias in material.aliases):
                return material

        for material in materials:
            material_name = material.name.lower()
            if term in material_name or material_name in term:
                return material

        for material in materials:
            for alias in material.aliases:
                alias_lowered = alias.lower()
                if term in alias_lowered or alias_lowered in term:
                    return material

        words = term.split()
        for material in materials:
            material_words = material.name.lower().split()
            if any(w in mw or mw in w for w in words for mw in material_words):
                return material

        return None

    @staticmethod
    def compute_confidence(search_term: str, material: Material) -> float:
        return calculate_material_confidence(search_term, material)

    async def search(
        self,
        search_term: str = "",
        category: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Material], int]:
        """Filter by name substring and exact category, then paginate."""
        term = search_term.strip().lower()
        matches = [
            m
            for m in await self._snapshot()
            if (not term or term in m.name.lower())
            and (category is None or m.category == category)
        ]
        return matches[offset : offset + limit], len(matches)

    async def stats(self) -> CatalogStats:
        materials = await self._snapshot()
        if not materials:
            return CatalogStats(total=0)
        counts = Counter(m.category for m in materials)
        return CatalogStats(
            total=len(materials),
            by_category=dict(sorted(counts.items())),
            average_gwp_factor=sum(m.gwp_factor for m in materials) / len(materials),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, material: Material | Mapping[str, Any]) -> Material:
        """Validate and persist a new material.

        Raises:
            MaterialValidationError: Listing every violated constraint.
            MaterialStoreError: If the store rejects the insert.
        """
        data = material.model_dump() if isinstance(material, BaseModel) else dict(material)
        ensure_valid(data)
        if not data.get("id"):
            data["id"] = f"mat_{uuid4().hex}"
        record = _build_material(data)

        async with self._refresh_lock:
            await self._store.insert(record)
            self._materials = (*self._materials, record)

        logger.info("material_added", material_id=record.id, name=record.name)
        return record

    async def update(self, material_id: str, changes: BaseModel | Mapping[str, Any]) -> Material:
        """Apply a partial update to an existing material."""
        existing = await self.get_by_id(material_id)
        if existing is None:
            raise MaterialNotFoundError(f"Material {material_id} not found")

        if isinstance(changes, BaseModel):
            updates = changes.model_dump(exclude_unset=True)
        else:
            updates = dict(changes)
        updates.pop("id", None)

        data = {**existing.model_dump(), **updates}
        ensure_valid(data)
        updated = _build_material(data)

        async with self._refresh_lock:
            await self._store.update(material_id, updated)
            self._materials = tuple(
                updated if m.id == material_id else m for m in self._materials
            )

        logger.info("material_updated", material_id=material_id, fields=sorted(updates))
        return updated

    async def remove(self, material_id: str) -> None:
        async with self._refresh_lock:
            await self._store.delete(material_id)
            self._materials = tuple(m for m in self._materials if m.id != material_id)
        logger.info("material_removed", material_id=material_id)

    async def clear_all(self) -> None:
        async with self._refresh_lock:
            await self._store.delete_all()
            self._materials = ()
        logger.info("materials_cleared")

    async def import_batch(self, records: Iterable[Mapping[str, Any]]) -> ImportResult:
        """Import *records* one by one, skipping any that fail.

        A record needs a name, a category and a numeric GWP factor. Records
        without an id get a synthetic ``imported_`` id.
        """
        imported = 0
        skipped = 0
        for index, record in enumerate(records):
            if not isinstance(record, Mapping) or not is_importable(record):
                skipped += 1
                logger.warning("material_import_skipped", index=index, reason="invalid_record")
                continue

            data = dict(record)
            if not data.get("id"):
                data["id"] = f"imported_{uuid4().hex}"

            try:
                await self.add(data)
            except (ValueError, MaterialStoreError) as exc:
                skipped += 1
                logger.warning(
                    "material_import_skipped",
                    index=index,
                    material_id=data["id"],
                    reason=str(exc),
                )
                continue
            imported += 1

        logger.info("materials_imported", imported=imported, skipped=skipped)
        return ImportResult(imported=imported, skipped=skipped)

    async def reset_to_defaults(self, seed_path: str | Path | None = None) -> ImportResult:
        """Replace the whole catalog with the default materials."""
        await self.clear_all()
        return await self.import_batch(load_seed_materials(seed_path))


def _build_material(data: Mapping[str, Any]) -> Material:
    """Build a ``Material``, reporting schema violations as validation errors."""
    try:
        return Material.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise MaterialValidationError(errors) from exc
