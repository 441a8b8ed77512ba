"""
Unit tests for the tier catalogue.
"""
from core.domain.value_objects import LicenseTier
from licenses.domain.tiers import default_max_activations, get_tier_config


class TestTiers:
    """Tests for tier lookup."""

    def test_default_quotas(self):
        assert default_max_activations(LicenseTier.FREE) == 1
        assert default_max_activations(LicenseTier.PRO) == 3
        assert default_max_activations(LicenseTier.AGENCY) == 25

    def test_default_catalogue_for_unknown_product(self):
        config = get_tier_config(LicenseTier.PRO, "unknown-product")
        assert config.name == "Pro"
        assert config.features == ("basic", "pro")

    def test_product_catalogue(self):
        features = get_tier_config(LicenseTier.AGENCY, "formflow").features
        assert "white_label" in features
        assert "conditional_logic" in features

    def test_higher_tiers_include_lower_features(self):
        for product in (None, "peanut-suite", "formflow", "peanut-booker"):
            free = set(get_tier_config(LicenseTier.FREE, product).features)
            pro = set(get_tier_config(LicenseTier.PRO, product).features)
            agency = set(get_tier_config(LicenseTier.AGENCY, product).features)
            assert free <= pro <= agency

    def test_product_specific_feature(self):
        assert "payments" in get_tier_config(LicenseTier.PRO, "peanut-booker").features
        assert "payments" not in get_tier_config(LicenseTier.FREE, "peanut-booker").features
