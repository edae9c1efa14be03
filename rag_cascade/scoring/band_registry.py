"""
Band Registry
rag_cascade/scoring/band_registry.py

Per-indicator lookup from qualitative band label to numeric weight.

When an indicator has no bands configured the registry can fall back to the
default three-band set used by the data-entry matrix:

    Green  1.0
    Amber  0.5
    Red    0.0
"""

from decimal import Decimal
from typing import Dict, Iterable, List

from rag_cascade.core.exceptions import BandConfigurationException, BandValidationException
from rag_cascade.models.scoring import BandDefinition

DEFAULT_BAND_WEIGHTS: Dict[str, Decimal] = {
    "Green": Decimal("1.0"),
    "Amber": Decimal("0.5"),
    "Red": Decimal("0.0"),
}


def default_bands(indicator_id: str) -> List[BandDefinition]:
    """The fallback band set, bound to one indicator."""
    return [
        BandDefinition(
            indicator_id=indicator_id,
            label=label,
            weight=weight,
            sort_order=order,
            rag_color=label.lower(),
        )
        for order, (label, weight) in enumerate(DEFAULT_BAND_WEIGHTS.items(), start=1)
    ]


class BandRegistry:
    """Read-only band set for a single indicator."""

    def __init__(self, indicator_id: str, bands: Iterable[BandDefinition]):
        self.indicator_id = indicator_id
        self._bands: Dict[str, BandDefinition] = {}
        for band in sorted(bands, key=lambda b: (b.sort_order, b.label)):
            if band.indicator_id != indicator_id:
                raise BandConfigurationException(
                    indicator_id, f"band '{band.label}' belongs to indicator {band.indicator_id}"
                )
            if band.label in self._bands:
                raise BandConfigurationException(indicator_id, f"duplicate band label '{band.label}'")
            self._bands[band.label] = band

    @classmethod
    def for_indicator(
        cls,
        indicator_id: str,
        bands: Iterable[BandDefinition],
        use_defaults: bool = True,
    ) -> "BandRegistry":
        """Build a registry, substituting the default bands when none are configured."""
        bands = list(bands)
        if not bands and use_defaults:
            bands = default_bands(indicator_id)
        return cls(indicator_id, bands)

    def __contains__(self, label: str) -> bool:
        return label.strip() in self._bands

    def __len__(self) -> int:
        return len(self._bands)

    @property
    def bands(self) -> List[BandDefinition]:
        return list(self._bands.values())

    def resolve(self, label: str) -> BandDefinition:
        """Return the band for label, raising BandValidationException if unknown."""
        band = self._bands.get(label.strip()) if label else None
        if band is None:
            raise BandValidationException(self.indicator_id, label)
        return band

    def weight_of(self, label: str) -> Decimal:
        return self.resolve(label).weight
