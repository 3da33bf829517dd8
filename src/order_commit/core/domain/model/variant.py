"""Variant selections as a typed set of (axis, value) pairs.

A product's variant price map is keyed by the canonical serialization of a
selection, e.g. ``color=red;size=m``. Older catalog entries were written for
a fixed two-axis size/color model using ad-hoc keys such as ``m|red``,
``m-red``, ``m_red``, ``m:red``, or a single bare axis value; those shapes are
produced by :meth:`VariantSelection.legacy_keys` so old price maps keep
resolving.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

LEGACY_SEPARATORS = ("|", "-", "_", ":")


def normalize_part(value: object) -> str:
    return str(value if value is not None else "").strip().lower()


@dataclass(frozen=True)
class VariantSelection:
    axes: tuple[tuple[str, str], ...] = ()

    @staticmethod
    def of(raw: Mapping[str, object] | None) -> "VariantSelection":
        if not raw:
            return VariantSelection()
        pairs = {}
        for name, value in raw.items():
            axis = normalize_part(name)
            val = normalize_part(value)
            if axis and val:
                pairs[axis] = val
        return VariantSelection(tuple(sorted(pairs.items())))

    def is_empty(self) -> bool:
        return not self.axes

    def value_of(self, axis: str) -> str:
        return dict(self.axes).get(axis, "")

    def canonical_key(self) -> str:
        return ";".join(f"{axis}={value}" for axis, value in self.axes)

    def legacy_keys(self) -> tuple[str, ...]:
        """Two-axis size/color key shapes, most specific first.

        Only applies when the selection uses nothing beyond ``size`` and
        ``color``; any other axis means the selection was never expressible
        in the legacy encoding.
        """
        if self.is_empty() or not {a for a, _ in self.axes} <= {"size", "color"}:
            return ()
        size = self.value_of("size")
        color = self.value_of("color")
        keys = [f"{size}{sep}{color}" for sep in LEGACY_SEPARATORS]
        if size and not color:
            keys.append(size)
        if color and not size:
            keys.append(color)
        return tuple(keys)

    def as_dict(self) -> dict[str, str]:
        return dict(self.axes)
