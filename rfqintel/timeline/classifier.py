"""Timeline classification from product category keywords.

Keyword families come from ``config/timeline_keywords.yaml`` when present,
otherwise from the built-in defaults below. Lists are ordered; the first
matching keyword wins and furniture is always checked before sourcing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from rfqintel.errors import ConfigurationError
from rfqintel.models import SourcingType, TimelineType

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_MARKERS = ("Sample Kit", "Material Sample")

DEFAULT_INDOOR_FURNITURE = (
    "Indoor Furniture",
    "Indoor Sofa",
    "Indoor Sectional",
    "Indoor Lounge Chair",
    "Indoor Dining Chair",
    "Indoor Dining Table",
    "Casegoods",
    "Beds",
    "Consoles",
    "Desks",
    "Cabinets",
    "Nightstands",
    "Upholstered Furniture",
    "Millwork / Cabinetry",
    "Millwork",
    "Cabinetry",
    "Fully Upholstered Pieces",
)

DEFAULT_OUTDOOR_FURNITURE = (
    "Outdoor Furniture",
    "Outdoor Sofa",
    "Outdoor Sectional",
    "Outdoor Lounge Chair",
    "Outdoor Dining",
    "Outdoor Dining Chair",
    "Outdoor Dining Table",
    "Daybed",
    "Chaise Lounge",
    "Pool Furniture",
    "Sun Lounger",
    "Outdoor Seating Sets",
)

DEFAULT_SOURCING = (
    "Lighting",
    "Flooring",
    "Marble / Stone",
    "Marble",
    "Stone",
    "Granite",
    "Carpets",
    "Drapery",
    "Window Treatments",
    "Accessories",
    "Hardware",
    "Metalwork",
)

SOURCING_TYPE_TIMELINES = {
    SourcingType.FURNITURE.value: TimelineType.SIX_STEP_FURNITURE,
    SourcingType.GLOBAL_SOURCING.value: TimelineType.FOUR_STEP_SOURCING,
}


@dataclass(frozen=True)
class TimelineKeywords:
    """Ordered keyword families used by the classifier."""

    sample_markers: tuple[str, ...] = DEFAULT_SAMPLE_MARKERS
    indoor_furniture: tuple[str, ...] = DEFAULT_INDOOR_FURNITURE
    outdoor_furniture: tuple[str, ...] = DEFAULT_OUTDOOR_FURNITURE
    sourcing: tuple[str, ...] = DEFAULT_SOURCING

    @property
    def furniture(self) -> tuple[str, ...]:
        return self.indoor_furniture + self.outdoor_furniture


def _keyword_list(data: dict, key: str, default: tuple[str, ...], source: Path) -> tuple[str, ...]:
    if key not in data or data[key] is None:
        return default
    values = data[key]
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ConfigurationError(f"'{key}' in {source} must be a list of strings")
    return tuple(v for v in values if v.strip())


def load_timeline_keywords(path: Path | None) -> TimelineKeywords:
    """Load keyword families from YAML, falling back to the built-in lists.

    Raises:
        ConfigurationError: If the file exists but is not valid keyword YAML
    """
    if path is None or not path.exists():
        logger.debug("Timeline keyword file not found, using defaults")
        return TimelineKeywords()

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {path}, got {type(data).__name__}")

    furniture = data.get("furniture") or {}
    if not isinstance(furniture, dict):
        raise ConfigurationError(f"'furniture' in {path} must map indoor/outdoor lists")

    return TimelineKeywords(
        sample_markers=_keyword_list(data, "sample_markers", DEFAULT_SAMPLE_MARKERS, path),
        indoor_furniture=_keyword_list(furniture, "indoor", DEFAULT_INDOOR_FURNITURE, path),
        outdoor_furniture=_keyword_list(furniture, "outdoor", DEFAULT_OUTDOOR_FURNITURE, path),
        sourcing=_keyword_list(data, "sourcing", DEFAULT_SOURCING, path),
    )


@dataclass
class TimelineClassifier:
    """Maps a category string to a production timeline type."""

    keywords: TimelineKeywords = field(default_factory=TimelineKeywords)

    @classmethod
    def from_path(cls, path: Path | None) -> TimelineClassifier:
        return cls(keywords=load_timeline_keywords(path))

    def classify(
        self, product_category: str | None, sourcing_category_fallback: str | None = None
    ) -> TimelineType:
        """Classify a category, using the project-level fallback when empty.

        Args:
            product_category: Item's own category
            sourcing_category_fallback: Project sourcing category

        Returns:
            TimelineType; ``none`` for empty input and sample kits,
            ``4step_sourcing`` when nothing else matches
        """
        category = (product_category or "").strip() or (sourcing_category_fallback or "").strip()
        if not category:
            return TimelineType.NONE

        folded = category.casefold()

        if self._first_match(folded, self.keywords.sample_markers):
            return TimelineType.NONE

        if self._first_match(folded, self.keywords.furniture):
            return TimelineType.SIX_STEP_FURNITURE

        if self._first_match(folded, self.keywords.sourcing):
            return TimelineType.FOUR_STEP_SOURCING

        return TimelineType.FOUR_STEP_SOURCING

    @staticmethod
    def _first_match(folded: str, keywords: tuple[str, ...]) -> str | None:
        for keyword in keywords:
            if keyword.casefold() in folded:
                return keyword
        return None


def timeline_for_sourcing_type(sourcing_type: str | None) -> TimelineType | None:
    """Direct timeline for an item that only has a sourcing type."""
    if not sourcing_type:
        return None
    key = getattr(sourcing_type, "value", sourcing_type)
    return SOURCING_TYPE_TIMELINES.get(key)
