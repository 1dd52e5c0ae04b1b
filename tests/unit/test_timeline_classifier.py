"""Unit tests for category -> timeline classification."""

from __future__ import annotations

from pathlib import Path

import pytest

from rfqintel.errors import ConfigurationError
from rfqintel.models import TimelineType
from rfqintel.timeline.classifier import (
    TimelineClassifier,
    TimelineKeywords,
    load_timeline_keywords,
    timeline_for_sourcing_type,
)

REPO_KEYWORDS = Path(__file__).resolve().parents[2] / "config" / "timeline_keywords.yaml"


@pytest.fixture
def classifier() -> TimelineClassifier:
    return TimelineClassifier()


@pytest.mark.parametrize(
    "category",
    [
        "Outdoor Dining Sets",
        "Indoor Sofa",
        "custom casegoods",
        "BEDS",
        "Millwork / Cabinetry",
        "Pool Furniture - loungers",
    ],
)
def test_furniture_categories(classifier, category):
    assert classifier.classify(category) == TimelineType.SIX_STEP_FURNITURE


@pytest.mark.parametrize(
    "category", ["Lighting", "Marble / Stone", "brass hardware", "Window Treatments"]
)
def test_sourcing_categories(classifier, category):
    assert classifier.classify(category) == TimelineType.FOUR_STEP_SOURCING


def test_unknown_category_defaults_to_sourcing(classifier):
    assert classifier.classify("Bespoke Wallcovering") == TimelineType.FOUR_STEP_SOURCING


@pytest.mark.parametrize("category", ["", "   ", None])
def test_empty_category_is_none(classifier, category):
    assert classifier.classify(category) == TimelineType.NONE


@pytest.mark.parametrize("category", ["Material Sample Kit", "fabric sample kit", "Material Samples"])
def test_sample_kits_have_no_timeline(classifier, category):
    assert classifier.classify(category) == TimelineType.NONE


def test_furniture_wins_over_sourcing(classifier):
    # Matches both "Outdoor Furniture" and "Lighting"
    assert classifier.classify("Outdoor Furniture with Lighting") == TimelineType.SIX_STEP_FURNITURE


def test_fallback_category_used_when_product_category_empty(classifier):
    assert classifier.classify("", "Indoor Furniture") == TimelineType.SIX_STEP_FURNITURE
    assert classifier.classify(None, "Flooring") == TimelineType.FOUR_STEP_SOURCING


def test_product_category_takes_precedence_over_fallback(classifier):
    assert classifier.classify("Lighting", "Indoor Furniture") == TimelineType.FOUR_STEP_SOURCING


def test_sourcing_type_mapping():
    assert timeline_for_sourcing_type("furniture") == TimelineType.SIX_STEP_FURNITURE
    assert timeline_for_sourcing_type("global_sourcing") == TimelineType.FOUR_STEP_SOURCING
    assert timeline_for_sourcing_type(None) is None


class TestKeywordFile:
    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_timeline_keywords(tmp_path / "absent.yaml") == TimelineKeywords()

    def test_repo_file_matches_defaults(self):
        assert load_timeline_keywords(REPO_KEYWORDS) == TimelineKeywords()

    def test_custom_file(self, tmp_path):
        path = tmp_path / "keywords.yaml"
        path.write_text(
            "sample_markers: [Swatch]\n"
            "furniture:\n  indoor: [Bench]\n  outdoor: []\n"
            "sourcing: [Tiles]\n"
        )
        classifier = TimelineClassifier.from_path(path)
        assert classifier.classify("Garden Bench") == TimelineType.SIX_STEP_FURNITURE
        assert classifier.classify("Leather Swatch") == TimelineType.NONE
        assert classifier.classify("Indoor Sofa") == TimelineType.FOUR_STEP_SOURCING

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "keywords.yaml"
        path.write_text("sourcing: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_timeline_keywords(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "keywords.yaml"
        path.write_text("sourcing: Lighting\n")
        with pytest.raises(ConfigurationError):
            load_timeline_keywords(path)
