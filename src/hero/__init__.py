"""Hero banner module."""

from .models import HERO_TABLES_CQL, Hero
from .service import HeroService


__all__ = ["HERO_TABLES_CQL", "Hero", "HeroService"]
