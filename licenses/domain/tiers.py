"""
Tier catalogue.

A tier determines a license's default activation quota and its feature
entitlements. Products may define their own feature sets per tier;
products without a catalogue fall back to the default tiers.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from core.domain.value_objects import LicenseTier


@dataclass(frozen=True)
class TierConfig:
    """Quota and feature flags for one tier."""

    name: str
    max_activations: int
    features: Tuple[str, ...]


DEFAULT_TIERS: Dict[LicenseTier, TierConfig] = {
    LicenseTier.FREE: TierConfig("Free", 1, ("basic",)),
    LicenseTier.PRO: TierConfig("Pro", 3, ("basic", "pro")),
    LicenseTier.AGENCY: TierConfig("Agency", 25, ("basic", "pro", "agency")),
}

_SUITE_FREE = ("utm", "links", "contacts", "dashboard")
_SUITE_PRO = _SUITE_FREE + ("popups", "analytics", "export")
_FORMS_FREE = ("basic_forms", "email_notifications", "spam_protection")
_FORMS_PRO = _FORMS_FREE + (
    "conditional_logic",
    "file_uploads",
    "multi_step",
    "integrations",
    "analytics",
)
_BOOKER_FREE = ("basic_booking", "email_notifications", "calendar_view")
_BOOKER_PRO = _BOOKER_FREE + (
    "payments",
    "reminders",
    "google_calendar",
    "zoom_integration",
    "custom_fields",
)

PRODUCT_TIERS: Dict[str, Dict[LicenseTier, TierConfig]] = {
    "peanut-suite": {
        LicenseTier.FREE: TierConfig("Free", 1, _SUITE_FREE),
        LicenseTier.PRO: TierConfig("Pro", 3, _SUITE_PRO),
        LicenseTier.AGENCY: TierConfig(
            "Agency", 25, _SUITE_PRO + ("monitor", "white_label", "priority_support")
        ),
    },
    "formflow": {
        LicenseTier.FREE: TierConfig("Free", 1, _FORMS_FREE),
        LicenseTier.PRO: TierConfig("Pro", 3, _FORMS_PRO),
        LicenseTier.AGENCY: TierConfig(
            "Agency", 25, _FORMS_PRO + ("white_label", "priority_support", "custom_templates")
        ),
    },
    "peanut-booker": {
        LicenseTier.FREE: TierConfig("Free", 1, _BOOKER_FREE),
        LicenseTier.PRO: TierConfig("Pro", 3, _BOOKER_PRO),
        LicenseTier.AGENCY: TierConfig(
            "Agency",
            25,
            _BOOKER_PRO + ("multi_staff", "white_label", "priority_support", "api_access"),
        ),
    },
}


def get_tier_config(tier: LicenseTier, product_slug: Optional[str] = None) -> TierConfig:
    """
    Resolve the configuration of a tier, product-specific when available.

    Args:
        tier: License tier
        product_slug: Optional product the request is for

    Returns:
        TierConfig for the tier
    """
    if product_slug and tier in PRODUCT_TIERS.get(product_slug, {}):
        return PRODUCT_TIERS[product_slug][tier]
    return DEFAULT_TIERS.get(tier, DEFAULT_TIERS[LicenseTier.FREE])


def default_max_activations(tier: LicenseTier) -> int:
    """Default activation quota for a tier."""
    return DEFAULT_TIERS[tier].max_activations
