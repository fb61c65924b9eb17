# -*- coding: utf-8 -*-
"""domain/wbs.py

Work-breakdown view of the flat element list (independent of UI).

Tree shape, three levels:
    0  catalog type group      ("Uncategorized" when the type is empty)
    1  catalog number group    (labelled with the catalog item name)
    2  element leaf

Elements without a catalog number are not part of the WBS view.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from core.models.cost_element import CostElement

UNCATEGORIZED = "Uncategorized"
UNNAMED_CATEGORY = "Unnamed Category"
INDENT = " " * 4


class WbsStrategy(str, Enum):
    SORTED_ROOTS = "sorted_roots"          # groups created lazily, roots sorted by name
    PRESORTED_GROUPS = "presorted_groups"  # all type groups created up front, sorted


@dataclass
class WbsNode:
    id: str
    number: str
    name: str
    catalog_type: str
    level: int
    is_group: bool = True
    element: Optional[CostElement] = None
    children: List["WbsNode"] = field(default_factory=list)


@dataclass(frozen=True)
class WbsDisplayItem:
    level: int
    is_group: bool
    number: str
    name: str
    catalog_type: str
    element: Optional[CostElement] = None

    @property
    def indented_name(self) -> str:
        if not self.name:
            return ""
        return INDENT * self.level + self.name


_INT_RE = re.compile(r"^[+-]?[0-9]+$")
INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1


def numeric_id(el: CostElement) -> int:
    """Signed 32-bit decimal Id; anything else (blank, "1_0", "1e3", overflow) counts as 0."""
    text = str(el.id or "").strip()
    if not _INT_RE.match(text):
        return 0
    value = int(text)
    return value if INT32_MIN <= value <= INT32_MAX else 0


def name_key(text: str):
    """Case-insensitive ordering of group labels; ties break on the exact text."""
    return (text.casefold(), text)


def _type_key(el: CostElement) -> str:
    return el.catalog_type or UNCATEGORIZED


def _type_node(key: str) -> WbsNode:
    return WbsNode(id=f"CAT_{key}", number="", name=key, catalog_type=key, level=0)


def build_wbs_tree(elements: Iterable[CostElement], strategy: WbsStrategy = WbsStrategy.SORTED_ROOTS) -> List[WbsNode]:
    """Pure: the elements are only read."""
    strategy = WbsStrategy(strategy)
    ordered = sorted(elements, key=numeric_id)  # stable for equal ids

    roots: List[WbsNode] = []
    type_groups: Dict[str, WbsNode] = {}
    number_groups: Dict[str, WbsNode] = {}

    if strategy == WbsStrategy.PRESORTED_GROUPS:
        for key in sorted({_type_key(el) for el in ordered if el.catalog_number}, key=name_key):
            type_groups[key] = _type_node(key)
            roots.append(type_groups[key])

    for el in ordered:
        if not el.catalog_number:
            continue

        key = _type_key(el)
        type_node = type_groups.get(key)
        if type_node is None:
            type_node = type_groups[key] = _type_node(key)
            roots.append(type_node)

        number_key = f"{key}_{el.catalog_number}"
        number_node = number_groups.get(number_key)
        if number_node is None:
            number_node = number_groups[number_key] = WbsNode(
                id=f"NUM_{number_key}",
                number=el.catalog_number,
                name=el.catalog_item_name or UNNAMED_CATEGORY,
                catalog_type=key,
                level=1,
            )
            type_node.children.append(number_node)

        number_node.children.append(WbsNode(
            id=el.id,
            number=el.catalog_number,
            name=el.name,
            catalog_type=el.catalog_type,
            level=2,
            is_group=False,
            element=el,
        ))

    if strategy == WbsStrategy.SORTED_ROOTS:
        roots.sort(key=lambda n: name_key(n.name))
    return roots


def flatten_wbs(nodes: Sequence[WbsNode]) -> List[WbsDisplayItem]:
    """Pre-order walk. Roots keep their order; children go by (number, name)."""
    out: List[WbsDisplayItem] = []

    def _visit(node: WbsNode) -> None:
        out.append(WbsDisplayItem(
            level=node.level,
            is_group=node.is_group,
            number=node.number,
            name=node.name,
            catalog_type=node.catalog_type,
            element=node.element,
        ))
        for child in sorted(node.children, key=lambda c: (name_key(c.number), name_key(c.name))):
            _visit(child)

    for n in nodes:
        _visit(n)
    return out


@dataclass
class CalculationGroup:
    """All calculations sharing one element Id, root first."""

    id: str
    root: CostElement
    calculations: List[CostElement] = field(default_factory=list)

    def members(self) -> List[CostElement]:
        return [self.root] + self.calculations


def group_calculations(elements: Iterable[CostElement]) -> List[CalculationGroup]:
    """Group by Id in first-appearance order.

    The root is the element flagged as parent node, else the first one; the
    remaining calculations are ordered by `order` (stable).
    """
    buckets: Dict[str, List[CostElement]] = {}
    for el in elements:
        buckets.setdefault(el.id, []).append(el)

    groups: List[CalculationGroup] = []
    for gid, members in buckets.items():
        root = next((m for m in members if m.is_parent_node), members[0])
        rest = sorted((m for m in members if m is not root), key=lambda m: m.order)
        groups.append(CalculationGroup(id=gid, root=root, calculations=rest))
    return groups


def assign_display_numbers(elements: Iterable[CostElement]) -> List[CostElement]:
    """Number the flat list view: "1", "1.1", "1.2", "2", ...

    Writes `display_number` on every element and returns them in display order.
    """
    out: List[CostElement] = []
    for i, group in enumerate(group_calculations(elements), start=1):
        group.root.display_number = str(i)
        out.append(group.root)
        for j, calc in enumerate(group.calculations, start=1):
            calc.display_number = f"{i}.{j}"
            out.append(calc)
    return out
