"""
SQLAlchemy ORM models for the maritime GWP backend.
Only the materials catalog and analysis summaries are persisted.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        dict[str, Any]: JSON,
        list[str]: JSON,
    }


class MaterialRecord(Base):
    """Catalog material with its GWP emission factor."""

    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    aliases: Mapped[list[str]] = mapped_column(default=list, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    gwp_factor: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="kg CO2e per kg of material",
    )
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="kg")
    density: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AnalysisResultRecord(Base):
    """Opaque summary of one GWP analysis run."""

    __tablename__ = "analysis_results"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    source: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Comma-separated source documents (shipyard export names)",
    )
    total_gwp_kg_co2e: Mapped[float] = mapped_column(Float, nullable=False)
    material_count: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        comment="JSON-serialised analysis report",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
