# insurdash/performance/color_scale.py
"""
Continuous colour for a variable cost ratio (VCR).

Bands:
- below 88: green, darker the more profitable
- 88 to 92: blue (watch zone)
- 92 and above: red, darker the worse
"""

from typing import Optional

from .constants import (
    VCR_COLOR_NEUTRAL, VCR_GREEN_HUE, VCR_BLUE_HUE, VCR_RED_HUE,
    VCR_WARNING_THRESHOLD, VCR_RISK_THRESHOLD,
)
from .helpers import is_number
from .models import ColorDescriptor


def _ease(value: float, start: float, end: float, out_start: float, out_end: float) -> float:
    """Linear map of value from [start, end] to [out_start, out_end], clamped."""
    if end == start:
        return out_start
    ratio = (value - start) / (end - start)
    ratio = min(max(ratio, 0.0), 1.0)
    return out_start + (out_end - out_start) * ratio


def get_dynamic_color_by_vcr(vcr: Optional[float]) -> ColorDescriptor:
    """
    Map a VCR value to an HSL colour descriptor.

    Args:
        vcr: Variable cost ratio in percent, or None

    Returns:
        ColorDescriptor (grey when vcr is missing)
    """
    if not is_number(vcr):
        return ColorDescriptor(*VCR_COLOR_NEUTRAL)

    if vcr < VCR_WARNING_THRESHOLD:
        lightness = _ease(vcr, VCR_WARNING_THRESHOLD, 60.0, 45.0, 30.0)
        return ColorDescriptor(VCR_GREEN_HUE, 60.0, lightness)

    if vcr < VCR_RISK_THRESHOLD:
        return ColorDescriptor(VCR_BLUE_HUE, 70.0, 50.0)

    lightness = _ease(vcr, VCR_RISK_THRESHOLD, 120.0, 55.0, 35.0)
    return ColorDescriptor(VCR_RED_HUE, 75.0, lightness)
