"""Size ranges, size presets and common measurement templates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

GENDER_SIZE_RANGES: dict[str, tuple[str, ...]] = {
    "Men": ("XS", "S", "M", "L", "XL", "XXL", "3XL", "4XL"),
    "Women": ("XS", "S", "M", "L", "XL", "XXL", "3XL"),
    "Kids": ("2T", "3T", "4T", "5T", "6", "7", "8", "10", "12", "14", "16"),
    "Unisex": ("XS", "S", "M", "L", "XL", "XXL", "3XL"),
}
DEFAULT_GENDER = "Unisex"


@dataclass(frozen=True)
class SizePreset:
    id: str
    label: str
    sizes: tuple[str, ...]


SIZE_PRESETS: tuple[SizePreset, ...] = (
    SizePreset("standard_us_alpha", "Standard US (Alpha)", ("XXS", "XS", "S", "M", "L", "XL", "XXL", "3XL")),
    SizePreset("standard_us_numeric", "Standard US (Numeric)", ("0", "2", "4", "6", "8", "10", "12", "14", "16", "18")),
    SizePreset("standard_eu_numeric", "Standard EU (Numeric)", ("32", "34", "36", "38", "40", "42", "44", "46", "48")),
    SizePreset("extended_plus", "Extended Plus", ("1X", "2X", "3X", "4X", "5X")),
    SizePreset("kids_us", "Kids US", ("2", "3", "4", "5", "6", "7", "8", "10", "12", "14", "16")),
)


@dataclass(frozen=True)
class CommonMeasurement:
    pom_code: str
    pom_name: str
    method: str


COMMON_MEASUREMENTS: tuple[CommonMeasurement, ...] = (
    CommonMeasurement("CHEST", 'Chest 1" below armhole', "Measure across chest 1 inch below armhole"),
    CommonMeasurement("LENGTH", "Center Back Length", "Measure from center back neck to hem"),
    CommonMeasurement("SLEEVE", "Sleeve Length", "Measure from shoulder point to cuff"),
    CommonMeasurement("SHOULDER", "Shoulder Width", "Measure from shoulder point to shoulder point"),
    CommonMeasurement("WAIST", "Waist", "Measure at natural waistline"),
)


def get_preset(preset_id: str) -> SizePreset:
    for preset in SIZE_PRESETS:
        if preset.id == preset_id:
            return preset
    raise KeyError(f"Unknown size preset: {preset_id}")


def default_size_range(gender: str | None) -> list[str]:
    """Default size range for an article's gender, Unisex when unknown."""
    sizes = GENDER_SIZE_RANGES.get((gender or "").strip().title())
    return list(sizes or GENDER_SIZE_RANGES[DEFAULT_GENDER])


def check_size_range(labels: Iterable[str]) -> list[str]:
    """Trim labels and reject empty ranges or case-insensitive duplicates."""
    cleaned: list[str] = []
    seen: set[str] = set()
    for label in labels:
        text = str(label).strip()
        if not text:
            raise ValueError("Size labels cannot be blank")
        folded = text.casefold()
        if folded in seen:
            raise ValueError(f"Size already exists in this range: {text}")
        seen.add(folded)
        cleaned.append(text)
    if not cleaned:
        raise ValueError("At least one size is required")
    return cleaned


def resolve_base_size(
    size_range: Sequence[str],
    preferred: str | None = None,
    fallback: str | None = None,
) -> str:
    """Pick the base size deterministically: preferred, then fallback, then the first size."""
    for candidate in (preferred, fallback):
        if candidate and candidate in size_range:
            return candidate
    return size_range[0]


def point_base_size(
    sizes: Mapping[str, float],
    global_base: str,
    own_base: str | None = None,
) -> str:
    """Base size of one point row: the global base, then its own, then its first size."""
    if not sizes:
        return global_base
    for candidate in (global_base, own_base):
        if candidate and candidate in sizes:
            return candidate
    return next(iter(sizes))
