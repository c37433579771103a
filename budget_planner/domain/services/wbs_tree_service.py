"""
WBS Tree Service - Derives the process hierarchy from WBS keys.

The tree is never stored. It is rebuilt from a project's flat process list:
- a node's parent is the process whose WBS is its key minus the last segment
- a node whose parent key is missing is shown as a root
- group (non-leaf) dates are the span of their leaf descendants
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..entities import ProjectProcess
from ..entities.wbs import parent_wbs, sort_by_wbs


@dataclass
class WBSNode:
    """A process placed in the derived tree."""
    process: ProjectProcess
    level: int = 0
    children: List['WBSNode'] = field(default_factory=list)
    calculated_start_date: Optional[date] = None
    calculated_end_date: Optional[date] = None

    @property
    def wbs(self) -> str:
        return self.process.wbs

    @property
    def is_group(self) -> bool:
        return bool(self.children)

    @property
    def calculated_days(self) -> Optional[int]:
        if self.calculated_start_date is None or self.calculated_end_date is None:
            return None
        return (self.calculated_end_date - self.calculated_start_date).days + 1

    @property
    def display_start_date(self) -> Optional[date]:
        """Rolled-up start for groups, own planned start for leaves."""
        if self.is_group and self.calculated_start_date is not None:
            return self.calculated_start_date
        return self.process.start_date

    @property
    def display_end_date(self) -> Optional[date]:
        if self.is_group and self.calculated_end_date is not None:
            return self.calculated_end_date
        return self.process.end_date

    def to_dict(self) -> dict:
        data = self.process.to_dict()
        data.update({
            'level': self.level,
            'is_group': self.is_group,
            'calculated_start_date': (
                self.calculated_start_date.isoformat() if self.calculated_start_date else None
            ),
            'calculated_end_date': (
                self.calculated_end_date.isoformat() if self.calculated_end_date else None
            ),
            'calculated_days': self.calculated_days,
        })
        return data


def _rollup(node: WBSNode) -> Optional[Tuple[date, date]]:
    if not node.children:
        if node.process.start_date is None or node.process.end_date is None:
            return None
        return node.process.start_date, node.process.end_date

    spans = [span for span in (_rollup(child) for child in node.children) if span]
    if not spans:
        return None
    node.calculated_start_date = min(start for start, _ in spans)
    node.calculated_end_date = max(end for _, end in spans)
    return node.calculated_start_date, node.calculated_end_date


def build_tree(processes: Iterable[ProjectProcess]) -> List[WBSNode]:
    """
    Link processes into a forest by WBS key.

    Args:
        processes: All processes of one project, in any order

    Returns:
        Root nodes in WBS order, children in WBS order
    """
    nodes: Dict[str, WBSNode] = {}
    roots: List[WBSNode] = []

    # WBS order puts every parent ahead of its children
    for process in sort_by_wbs(processes):
        node = WBSNode(process=process)
        parent = nodes.get(parent_wbs(process.wbs) or "")
        if parent is not None:
            node.level = parent.level + 1
            parent.children.append(node)
        else:
            roots.append(node)
        nodes.setdefault(process.wbs, node)

    for root in roots:
        _rollup(root)
    return roots


def flatten_tree(roots: Iterable[WBSNode]) -> List[WBSNode]:
    """Depth-first, pre-order listing of a forest."""
    flat: List[WBSNode] = []
    stack = list(reversed(list(roots)))
    while stack:
        node = stack.pop()
        flat.append(node)
        stack.extend(reversed(node.children))
    return flat


def build_wbs_rows(processes: Iterable[ProjectProcess]) -> List[WBSNode]:
    """Tree rows in display order with levels and rolled-up dates."""
    return flatten_tree(build_tree(processes))
