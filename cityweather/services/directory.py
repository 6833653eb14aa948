"""City directory backed by the ``city`` table, with YAML seeding."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, Sequence

import yaml
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from cityweather.core.config import settings
from cityweather.db.types import utcnow
from cityweather.models import City, CityPayload

logger = logging.getLogger(__name__)


class EntityDirectory(Protocol):
    """Read-only source of the cities a refresh pass should cover."""

    def list_entities(self) -> Sequence[City]:
        ...


class CitySeedFile(BaseModel):
    """Cities loaded from config/cities.yml."""

    cities: list[CityPayload] = Field(default_factory=list)


class CityDirectory:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def list_entities(self) -> list[City]:
        with Session(self.engine) as session:
            return list(session.exec(select(City).order_by(City.id)).all())

    def get_city(self, city_id: int) -> City | None:
        with Session(self.engine) as session:
            return session.get(City, city_id)

    def upsert_city(self, payload: CityPayload) -> City:
        """Create a city or update the one with the same name."""
        with Session(self.engine) as session:
            existing = session.exec(select(City).where(City.name == payload.name)).first()
            if existing:
                existing.country = payload.country
                existing.latitude = payload.latitude
                existing.longitude = payload.longitude
                existing.updated_at = utcnow()
                city = existing
            else:
                city = City(**payload.model_dump())
            session.add(city)
            session.commit()
            session.refresh(city)
            return city


def load_city_seed(path: str | Path | None = None) -> list[CityPayload]:
    """Load seed cities from YAML; a missing file yields no cities."""

    seed_path = Path(path or settings.city_seed_path)
    if not seed_path.exists():
        return []
    data: dict[str, Any] = yaml.safe_load(seed_path.read_text(encoding="utf-8")) or {}
    return CitySeedFile.model_validate(data).cities


def bootstrap_cities(directory: CityDirectory, path: str | Path | None = None) -> int:
    """Seed the city table from YAML when it is empty. Returns the number seeded."""

    if directory.list_entities():
        return 0
    try:
        seeds = load_city_seed(path)
    except (yaml.YAMLError, ValueError) as exc:
        logger.error("Failed to load city seed file: %s", exc)
        return 0
    for payload in seeds:
        directory.upsert_city(payload)
    if seeds:
        logger.info("Seeded %s cities from %s", len(seeds), path or settings.city_seed_path)
    return len(seeds)


__all__ = [
    "CityDirectory",
    "CitySeedFile",
    "EntityDirectory",
    "bootstrap_cities",
    "load_city_seed",
]
