"""Persistence collaborators for the materials catalog.

The catalog only relies on the small ``MaterialStore`` contract; the
SQL-backed store is used by the running application and the in-memory
store by tests and offline tooling.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import get_logger
from app.db.models import MaterialRecord
from app.modules.materials.schemas import Material

logger = get_logger(__name__)


class MaterialStoreError(RuntimeError):
    """Raised when the backing store rejects a catalog operation."""


class MaterialStore(Protocol):
    """Contract of the catalog's persistence collaborator."""

    async def list_all(self) -> list[Material]: ...

    async def insert(self, material: Material) -> None: ...

    async def update(self, material_id: str, material: Material) -> None: ...

    async def delete(self, material_id: str) -> None: ...

    async def delete_all(self) -> None: ...


class InMemoryMaterialStore:
    """Dict-backed store; ``list_all`` is ordered by name like the SQL store."""

    def __init__(self, materials: list[Material] | None = None) -> None:
        self._rows: dict[str, Material] = {m.id: m for m in materials or []}

    async def list_all(self) -> list[Material]:
        return sorted(self._rows.values(), key=lambda m: m.name)

    async def insert(self, material: Material) -> None:
        if material.id in self._rows:
            raise MaterialStoreError(f"Material {material.id} already exists")
        self._rows[material.id] = material

    async def update(self, material_id: str, material: Material) -> None:
        if material_id not in self._rows:
            raise MaterialStoreError(f"Material {material_id} not found")
        self._rows[material_id] = material

    async def delete(self, material_id: str) -> None:
        if self._rows.pop(material_id, None) is None:
            raise MaterialStoreError(f"Material {material_id} not found")

    async def delete_all(self) -> None:
        self._rows.clear()


class SqlMaterialStore:
    """SQLAlchemy-backed store opening one session per operation.

    Usage::

        store = SqlMaterialStore(get_session_factory())
        materials = await store.list_all()
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_all(self) -> list[Material]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MaterialRecord).order_by(MaterialRecord.name.asc())
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("material_store_list_failed", error=str(exc))
            raise MaterialStoreError(f"Failed to load materials: {exc}") from exc
        return [_record_to_material(row) for row in rows]

    async def insert(self, material: Material) -> None:
        try:
            async with self._session_factory() as session:
                session.add(_material_to_record(material))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("material_store_insert_failed", material_id=material.id, error=str(exc))
            raise MaterialStoreError(f"Failed to add material {material.id}: {exc}") from exc

    async def update(self, material_id: str, material: Material) -> None:
        try:
            async with self._session_factory() as session:
                row = await session.get(MaterialRecord, material_id)
                if row is None:
                    raise MaterialStoreError(f"Material {material_id} not found")
                row.name = material.name
                row.aliases = list(material.aliases)
                row.category = material.category
                row.gwp_factor = material.gwp_factor
                row.unit = material.unit
                row.density = material.density
                row.description = material.description
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("material_store_update_failed", material_id=material_id, error=str(exc))
            raise MaterialStoreError(f"Failed to update material {material_id}: {exc}") from exc

    async def delete(self, material_id: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(MaterialRecord).where(MaterialRecord.id == material_id)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("material_store_delete_failed", material_id=material_id, error=str(exc))
            raise MaterialStoreError(f"Failed to remove material {material_id}: {exc}") from exc

    async def delete_all(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(MaterialRecord))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("material_store_clear_failed", error=str(exc))
            raise MaterialStoreError(f"Failed to clear materials: {exc}") from exc


def _record_to_material(row: MaterialRecord) -> Material:
    return Material(
        id=row.id,
        name=row.name,
        aliases=list(row.aliases or []),
        category=row.category,
        gwp_factor=float(row.gwp_factor),
        unit=row.unit,
        density=row.density,
        description=row.description,
    )


def _material_to_record(material: Material) -> MaterialRecord:
    return MaterialRecord(
        id=material.id,
        name=material.name,
        aliases=list(material.aliases),
        category=material.category,
        gwp_factor=material.gwp_factor,
        unit=material.unit,
        density=material.density,
        description=material.description,
    )
