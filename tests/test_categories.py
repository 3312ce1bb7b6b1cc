"""Tests for category definitions."""

from declutter.categories import (
    CATEGORIES,
    OTHER,
    criterion_for_category,
    get_all_categories,
    get_category,
    risk_for_category,
)
from declutter.classifier import Matcher
from declutter.models import RiskTier


class TestCategories:
    def test_all_categories_have_names(self):
        for key, category in CATEGORIES.items():
            assert category.name == key

    def test_all_patterns_compile(self):
        for category in get_all_categories():
            Matcher(category.criterion)

    def test_other_exists(self):
        assert OTHER in CATEGORIES

    def test_expected_thresholds(self):
        assert CATEGORIES["Incomplete Downloads"].criterion.size_threshold == 10_000_000
        assert CATEGORIES["Application Caches"].criterion.size_threshold == 100_000_000
        assert CATEGORIES["Developer Files"].criterion.size_threshold == 500_000_000
        assert CATEGORIES["Docker"].criterion.size_threshold == 1_000_000_000

    def test_risk_tiers(self):
        assert risk_for_category("Incomplete Downloads") is RiskTier.LOW
        assert risk_for_category("Developer Files") is RiskTier.MEDIUM
        assert risk_for_category("System Logs") is RiskTier.MEDIUM


class TestGetCategory:
    def test_known(self):
        assert get_category("Docker").name == "Docker"

    def test_unknown_falls_back_to_other(self):
        assert get_category("No Such Thing").name == OTHER

    def test_none_is_other(self):
        assert get_category(None).name == OTHER

    def test_criterion_for_unknown(self):
        assert criterion_for_category("nope") == CATEGORIES[OTHER].criterion

    def test_docker_pattern_matches_data_directories(self):
        matcher = Matcher(criterion_for_category("Docker"))
        assert matcher.name_matches("containers")
        assert matcher.name_matches("volumes")
        assert not matcher.name_matches("my-volumes-backup")

    def test_download_pattern(self):
        matcher = Matcher(criterion_for_category("Incomplete Downloads"))
        assert matcher.name_matches("video.crdownload")
        assert matcher.name_matches("iso.part")
        assert not matcher.name_matches("photo.jpg")
