"""Layered flow layout for Sankey diagrams.

The layout follows the usual d3-sankey recipe: nodes are assigned to columns
by longest-path depth (adjusted by an alignment function), stacked vertically
in proportion to their value, then nudged by a few rounds of relaxation that
pull each node toward the weighted centre of its neighbours while resolving
overlaps.

The entry points share one contract::

    nodes, links = layout(nodes, links, config)

Both lists come back as the same objects, enriched with geometry
(``x0, y0, x1, y1`` on nodes; ``width, y0, y1`` on links). Link endpoints given
as ids are replaced by the matching :class:`FlowNode`.
"""

import logging
import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Callable, Optional

import igraph as ig

from .errors import CircularLinkError, DanglingReferenceError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FlowNode:
    id: str
    group: Any = None
    fixed_value: Optional[float] = None
    index: int = 0
    value: float = 0.0
    depth: int = 0
    height: int = 0
    layer: int = 0
    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    y1: float = 0.0
    source_links: list = field(default_factory=list, repr=False)
    target_links: list = field(default_factory=list, repr=False)


@dataclass(eq=False)
class FlowLink:
    source: Any
    target: Any
    value: float
    index: int = 0
    width: float = 0.0
    y0: float = 0.0
    y1: float = 0.0


# ----------------------------------------------------------------------
# alignment


def sankey_left(node, n):
    return node.depth


def sankey_right(node, n):
    return n - 1 - node.height


def sankey_justify(node, n):
    return node.depth if node.source_links else n - 1


def sankey_center(node, n):
    if node.target_links:
        return node.depth
    if node.source_links:
        return min(link.target.depth for link in node.source_links) - 1
    return 0


ALIGNMENTS = {
    "left": sankey_left,
    "right": sankey_right,
    "center": sankey_center,
    "justify": sankey_justify,
}


def resolve_align(align):
    """Map an alignment name to its function; unknown names fall back to justify."""
    if callable(align):
        return align
    func = ALIGNMENTS.get(align)
    if func is None:
        logger.warning("Unknown node alignment %r, using 'justify'", align)
        return sankey_justify
    return func


# ----------------------------------------------------------------------
# link ordering helpers


def _source_breadth(link):
    return (link.source.y0, link.index)


def _target_breadth(link):
    return (link.target.y0, link.index)


def _default_node_id(node):
    return node.id


@dataclass
class LayoutConfig:
    node_width: float = 24
    node_padding: float = 8
    align: Any = "justify"
    # comparator(a, b) -> int; None re-sorts columns by breadth while relaxing
    node_sort: Optional[Callable] = None
    extent: tuple = ((0, 0), (1, 1))
    iterations: int = 6
    node_id: Callable = _default_node_id


class SankeyLayout:
    def __init__(
        self,
        node_width=24,
        node_padding=8,
        align="justify",
        node_sort=None,
        extent=((0, 0), (1, 1)),
        iterations=6,
        node_id=None,
    ):
        self.node_width = float(node_width)
        self.node_padding = float(node_padding)
        self.align = resolve_align(align)
        self.node_sort = node_sort
        (self.x0, self.y0), (self.x1, self.y1) = (
            tuple(map(float, extent[0])),
            tuple(map(float, extent[1])),
        )
        self.iterations = int(iterations)
        self.node_id = node_id or _default_node_id
        self._py = self.node_padding

    @classmethod
    def from_config(cls, config):
        return cls(
            node_width=config.node_width,
            node_padding=config.node_padding,
            align=config.align,
            node_sort=config.node_sort,
            extent=config.extent,
            iterations=config.iterations,
            node_id=config.node_id,
        )

    def __call__(self, nodes, links):
        nodes = list(nodes)
        links = list(links)
        self._compute_node_links(nodes, links)
        self._compute_node_values(nodes)
        self._compute_node_depths(nodes, links)
        columns = self._compute_node_layers(nodes)
        self._compute_node_breadths(columns)
        self._compute_link_breadths(nodes)
        logger.debug(
            "Laid out %d nodes and %d links in %d columns",
            len(nodes),
            len(links),
            len(columns),
        )
        return nodes, links

    # ------------------------------------------------------------------
    def _compute_node_links(self, nodes, links):
        for i, node in enumerate(nodes):
            node.index = i
            node.source_links = []
            node.target_links = []
        node_by_id = {self.node_id(node): node for node in nodes}
        for i, link in enumerate(links):
            link.index = i
            if not isinstance(link.source, FlowNode):
                link.source = self._find(node_by_id, link.source, i)
            if not isinstance(link.target, FlowNode):
                link.target = self._find(node_by_id, link.target, i)
            link.source.source_links.append(link)
            link.target.target_links.append(link)

    @staticmethod
    def _find(node_by_id, node_id, link_index):
        node = node_by_id.get(node_id)
        if node is None:
            raise DanglingReferenceError(node_id, link_index)
        return node

    def _compute_node_values(self, nodes):
        for node in nodes:
            if node.fixed_value is not None:
                node.value = node.fixed_value
                continue
            node.value = max(
                sum(link.value for link in node.source_links),
                sum(link.value for link in node.target_links),
            )

    def _compute_node_depths(self, nodes, links):
        graph = ig.Graph(
            n=len(nodes),
            edges=[(link.source.index, link.target.index) for link in links],
            directed=True,
        )
        if not graph.is_dag():
            raise CircularLinkError("circular link", context={"nodes": len(nodes)})
        order = graph.topological_sorting(mode="out")
        for v in order:
            preds = graph.predecessors(v)
            nodes[v].depth = max((nodes[u].depth + 1 for u in preds), default=0)
        for v in reversed(order):
            succs = graph.successors(v)
            nodes[v].height = max((nodes[w].height + 1 for w in succs), default=0)

    def _compute_node_layers(self, nodes):
        if not nodes:
            return []
        x = max(node.depth for node in nodes) + 1
        kx = (self.x1 - self.x0 - self.node_width) / (x - 1) if x > 1 else 0.0
        columns = [[] for _ in range(x)]
        for node in nodes:
            i = max(0, min(x - 1, int(math.floor(self.align(node, x)))))
            node.layer = i
            node.x0 = self.x0 + i * kx
            node.x1 = node.x0 + self.node_width
            columns[i].append(node)
        if self.node_sort is not None:
            for column in columns:
                column.sort(key=cmp_to_key(self.node_sort))
        return [column for column in columns if column]

    def _compute_node_breadths(self, columns):
        if not columns:
            return
        widest = max(len(column) for column in columns)
        if widest > 1:
            self._py = min(self.node_padding, (self.y1 - self.y0) / (widest - 1))
        else:
            self._py = self.node_padding
        self._initialize_node_breadths(columns)
        for i in range(self.iterations):
            alpha = 0.99 ** i
            beta = max(1 - alpha, (i + 1) / self.iterations)
            self._relax_right_to_left(columns, alpha, beta)
            self._relax_left_to_right(columns, alpha, beta)

    def _initialize_node_breadths(self, columns):
        py = self._py
        scales = []
        for column in columns:
            total = sum(node.value for node in column)
            if total > 0:
                scales.append((self.y1 - self.y0 - (len(column) - 1) * py) / total)
        ky = min(scales) if scales else 0.0
        for column in columns:
            y = self.y0
            for node in column:
                node.y0 = y
                node.y1 = y + node.value * ky
                y = node.y1 + py
                for link in node.source_links:
                    link.width = link.value * ky
            y = (self.y1 - y + py) / (len(column) + 1)
            for i, node in enumerate(column):
                node.y0 += y * (i + 1)
                node.y1 += y * (i + 1)
            self._reorder_links(column)

    def _relax_left_to_right(self, columns, alpha, beta):
        for column in columns[1:]:
            for target in column:
                y = 0.0
                w = 0.0
                for link in target.target_links:
                    v = link.value * (target.layer - link.source.layer)
                    y += self._target_top(link.source, target) * v
                    w += v
                if not w > 0:
                    continue
                dy = (y / w - target.y0) * alpha
                target.y0 += dy
                target.y1 += dy
                self._reorder_node_links(target)
            if self.node_sort is None:
                column.sort(key=lambda node: node.y0)
            self._resolve_collisions(column, beta)

    def _relax_right_to_left(self, columns, alpha, beta):
        for column in reversed(columns[:-1]):
            for source in column:
                y = 0.0
                w = 0.0
                for link in source.source_links:
                    v = link.value * (link.target.layer - source.layer)
                    y += self._source_top(source, link.target) * v
                    w += v
                if not w > 0:
                    continue
                dy = (y / w - source.y0) * alpha
                source.y0 += dy
                source.y1 += dy
                self._reorder_node_links(source)
            if self.node_sort is None:
                column.sort(key=lambda node: node.y0)
            self._resolve_collisions(column, beta)

    def _resolve_collisions(self, column, alpha):
        py = self._py
        i = len(column) >> 1
        subject = column[i]
        self._collisions_bottom_to_top(column, subject.y0 - py, i - 1, alpha)
        self._collisions_top_to_bottom(column, subject.y1 + py, i + 1, alpha)
        self._collisions_bottom_to_top(column, self.y1, len(column) - 1, alpha)
        self._collisions_top_to_bottom(column, self.y0, 0, alpha)

    def _collisions_top_to_bottom(self, column, y, i, alpha):
        # push overlapping nodes down
        for node in column[i:]:
            dy = (y - node.y0) * alpha
            if dy > 1e-6:
                node.y0 += dy
                node.y1 += dy
            y = node.y1 + self._py

    def _collisions_bottom_to_top(self, column, y, i, alpha):
        # push overlapping nodes up
        for j in range(i, -1, -1):
            node = column[j]
            dy = (node.y1 - y) * alpha
            if dy > 1e-6:
                node.y0 -= dy
                node.y1 -= dy
            y = node.y0 - self._py

    def _reorder_node_links(self, node):
        for link in node.target_links:
            link.source.source_links.sort(key=_target_breadth)
        for link in node.source_links:
            link.target.target_links.sort(key=_source_breadth)

    def _reorder_links(self, column):
        for node in column:
            node.source_links.sort(key=_target_breadth)
            node.target_links.sort(key=_source_breadth)

    def _target_top(self, source, target):
        """The target.y0 that would give a straight link from source to target."""
        py = self._py
        y = source.y0 - (len(source.source_links) - 1) * py / 2
        for link in source.source_links:
            if link.target is target:
                break
            y += link.width + py
        for link in target.target_links:
            if link.source is source:
                break
            y -= link.width
        return y

    def _source_top(self, source, target):
        """The source.y0 that would give a straight link from source to target."""
        py = self._py
        y = target.y0 - (len(target.target_links) - 1) * py / 2
        for link in target.target_links:
            if link.source is source:
                break
            y += link.width + py
        for link in source.source_links:
            if link.target is target:
                break
            y -= link.width
        return y

    def _compute_link_breadths(self, nodes):
        for node in nodes:
            y0 = node.y0
            y1 = y0
            for link in node.source_links:
                link.y0 = y0 + link.width / 2
                y0 += link.width
            for link in node.target_links:
                link.y1 = y1 + link.width / 2
                y1 += link.width


def sankey_layout(nodes, links, config=None):
    """Run the layout with a :class:`LayoutConfig` (defaults when omitted)."""
    return SankeyLayout.from_config(config or LayoutConfig())(nodes, links)


def sankey_link_horizontal(link):
    """Cubic Bezier from the source's right edge to the target's left edge."""
    sx, sy = link.source.x1, link.y0
    tx, ty = link.target.x0, link.y1
    mx = (sx + tx) / 2
    return (
        f"M{sx:.3f},{sy:.3f}"
        f"C{mx:.3f},{sy:.3f} {mx:.3f},{ty:.3f} {tx:.3f},{ty:.3f}"
    )
