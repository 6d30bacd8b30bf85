# posyandu/wizard/scoring.py
"""
Score calculators for the examination draft.

All functions are pure and tolerate partially filled forms: missing or
malformed input yields a placeholder ("-" or 0) instead of an exception.
Band tables come from settings unless passed explicitly.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Mapping, Optional, Sequence

from posyandu.config import AdlBand, BmiBand, get_settings
from posyandu.wizard.vocabularies import ADL_DOMAINS, KESIMPULAN_BB, PUMA_SCORED_ITEMS

PLACEHOLDER = "-"
PUMA_REFER = "Perlu Rujuk"
PUMA_NORMAL = "Normal"


def parse_number(raw) -> Optional[Decimal]:
    """Parse a numeric form value ("12.5", "12,5", 12.5); None when not a finite number."""
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip().replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def compute_bmi(height_cm, weight_kg) -> Optional[Decimal]:
    """BMI rounded half-up to one decimal, or None if it cannot be computed."""
    height = parse_number(height_cm)
    weight = parse_number(weight_kg)
    if height is None or weight is None or height <= 0 or weight <= 0:
        return None
    height_m = height / Decimal(100)
    bmi = weight / (height_m * height_m)
    return bmi.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def compute_bmi_bucket(
    height_cm,
    weight_kg,
    bands: Optional[Sequence[BmiBand]] = None,
) -> str:
    bmi = compute_bmi(height_cm, weight_kg)
    if bmi is None:
        return PLACEHOLDER

    table = bands if bands is not None else get_settings().bmi_bands
    for band in table:
        if band.upper is None or bmi <= Decimal(str(band.upper)):
            return band.label
    return PLACEHOLDER


def compute_copd_risk_score(answers: Optional[Mapping[str, Optional[bool]]]) -> int:
    """
    PUMA score: number of affirmative answers among the three scored items.

    The spirometry item is informational and never counted; null or
    missing answers count as 0.
    """
    if not answers:
        return 0
    return sum(1 for key in PUMA_SCORED_ITEMS if answers.get(key) is True)


def classify_copd_risk(score: int, threshold: Optional[int] = None) -> str:
    limit = threshold if threshold is not None else get_settings().puma_referral_threshold
    return PUMA_REFER if score >= limit else PUMA_NORMAL


def _domain_points(raw) -> int:
    if isinstance(raw, bool):
        return 0
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(value, 0)


def compute_independence_score(adl: Optional[Mapping[str, object]]) -> int:
    """Sum of the eight ADL domain points; unknown keys are ignored."""
    if not adl:
        return 0
    return sum(_domain_points(adl.get(key)) for key in ADL_DOMAINS)


def classify_independence(score: int, bands: Optional[Sequence[AdlBand]] = None) -> str:
    """Map an ADL total onto its independence level. Negative totals clip to 0."""
    table = bands if bands is not None else get_settings().adl_bands
    total = max(int(score), 0)
    for band in table:
        if band.lower <= total and (band.upper is None or total <= band.upper):
            return band.label
    return PLACEHOLDER


def compute_weight_conclusion(value: Optional[str]) -> str:
    """
    Toddler weight conclusion.

    Selected by the health worker from a fixed vocabulary rather than
    derived; anything outside the vocabulary shows as the placeholder.
    """
    if value and value in KESIMPULAN_BB.values:
        return value
    return PLACEHOLDER
