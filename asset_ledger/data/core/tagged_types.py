"""
Tagged type values for open sets of kinds.

Location types and movement types are a known set of tags plus a free-text
``custom`` arm. Unknown input is kept as ``TaggedType('custom', label)`` so two
distinct custom kinds never collapse into one.
"""

from __future__ import annotations

from dataclasses import dataclass

CUSTOM_TAG = 'custom'

LOCATION_TYPES: set[str] = {
    'warehouse', 'store', 'garage', 'shed', 'shelf', 'cabinet',
    'bin', 'room', 'aisle', 'vehicle', 'virtual',
}

MOVEMENT_TYPES: set[str] = {
    'purchase', 'sale', 'transfer', 'adjustment', 'consumption',
    'return', 'build', 'disassembly', 'disposal',
}

ASSET_CONDITIONS: set[str] = {
    'new', 'excellent', 'good', 'fair', 'poor', 'damaged', 'unusable',
}

ASSET_STATUSES: set[str] = {
    'available', 'in_use', 'reserved', 'in_transit', 'out_for_repair',
    'maintenance', 'damaged', 'retired', 'lost', 'disposed', 'unknown',
}

TERMINAL_ASSET_STATUSES: set[str] = {'retired', 'lost', 'disposed'}


def normalize_tag(value: str) -> str:
    return '_'.join(str(value).strip().lower().replace('-', ' ').split())


@dataclass(frozen=True)
class TaggedType:
    """A known tag, or ``custom`` carrying the caller's own label"""

    tag: str
    label: str | None = None

    @property
    def is_custom(self) -> bool:
        return self.tag == CUSTOM_TAG

    @classmethod
    def parse(cls, value, known: set[str]) -> TaggedType:
        """
        Parse free text (or an existing TaggedType) against a known tag set.

        Args:
            value: Tag text, e.g. "Vehicle", "tool crib", or a TaggedType
            known: Set of recognised tags

        Returns:
            TaggedType with the known tag, or the custom arm holding the trimmed text
        """
        if isinstance(value, TaggedType):
            return value
        text = str(value or '').strip()
        if not text:
            raise ValueError("Type tag cannot be blank")
        tag = normalize_tag(text)
        if tag in known:
            return cls(tag)
        if tag.startswith(CUSTOM_TAG + ':'):
            text = text.split(':', 1)[1].strip()
            if not text:
                raise ValueError("Custom type label cannot be blank")
        return cls(CUSTOM_TAG, text)

    @classmethod
    def from_columns(cls, tag: str, label: str | None) -> TaggedType:
        if tag == CUSTOM_TAG:
            return cls(CUSTOM_TAG, label)
        return cls(tag)

    def to_columns(self) -> tuple[str, str | None]:
        return self.tag, self.label if self.is_custom else None

    def __str__(self) -> str:
        if self.is_custom:
            return f"{CUSTOM_TAG}:{self.label}"
        return self.tag
