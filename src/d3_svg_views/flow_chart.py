import logging
import secrets
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Sequence

from .errors import DanglingReferenceError
from .scales import SCHEME_TABLEAU10, OrdinalScale, resolve_format
from .sankey import FlowLink, FlowNode, LayoutConfig, sankey_layout, sankey_link_horizontal
from .selection import MiniD3SVG

logger = logging.getLogger(__name__)

GROUP_LINK_COLORS = ("source", "target", "source-target")


def _item_lookup(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def default_node_id(node):
    return _item_lookup(node, "id")


def default_link_source(link):
    return _item_lookup(link, "source")


def default_link_target(link):
    return _item_lookup(link, "target")


def default_link_value(link):
    return _item_lookup(link, "value")


def default_node_label(node):
    return node.id


def default_node_title(node, fmt):
    return f"{node.id}\n{fmt(node.value)}"


def default_link_title(link, fmt):
    return f"{link.source.id} → {link.target.id}\n{fmt(link.value)}"


@dataclass
class FlowChartConfig:
    """Every option the Sankey chart understands, with its default.

    Group-based ``link_color`` modes (``source``, ``target``,
    ``source-target``) need ``node_group``; without it links are drawn in
    ``currentColor``. Any other ``link_color`` string is used as a static
    stroke color. Unknown ``align`` names fall back to ``justify``.
    """

    # value formatter: d3-format style specifier or callable(value) -> str
    format: Any = ","
    # left | right | center | justify, or callable(node, n_columns)
    align: Any = "justify"
    node_id: Callable = default_node_id
    # callable(input node) -> group tag used for colors
    node_group: Optional[Callable] = None
    node_groups: Optional[Sequence] = None
    node_label: Optional[Callable] = default_node_label
    node_title: Optional[Callable] = default_node_title
    # comparator(a, b) -> int over FlowNode
    node_sort: Optional[Callable] = None
    node_width: float = 15
    node_padding: float = 10
    node_label_padding: float = 6
    node_stroke: Optional[str] = "currentColor"
    node_stroke_width: Optional[float] = None
    node_stroke_opacity: Optional[float] = None
    node_stroke_linejoin: Optional[str] = None
    link_source: Callable = default_link_source
    link_target: Callable = default_link_target
    link_value: Callable = default_link_value
    link_path: Callable = sankey_link_horizontal
    link_title: Optional[Callable] = default_link_title
    link_color: str = "source-target"
    link_stroke_opacity: float = 0.5
    link_mix_blend_mode: Optional[str] = "multiply"
    colors: Sequence = SCHEME_TABLEAU10
    width: float = 640
    height: float = 400
    margin_top: float = 5
    margin_right: float = 1
    margin_bottom: float = 5
    margin_left: float = 1
    label_font_family: Optional[str] = "sans-serif"
    label_font_size: Optional[float] = 10
    iterations: int = 6
    # callable(nodes, links, LayoutConfig) -> (nodes, links)
    layout: Optional[Callable] = None

    @property
    def extent(self):
        return (
            (self.margin_left, self.margin_top),
            (self.width - self.margin_right, self.height - self.margin_bottom),
        )

    def layout_config(self):
        return LayoutConfig(
            node_width=self.node_width,
            node_padding=self.node_padding,
            align=self.align,
            node_sort=self.node_sort,
            extent=self.extent,
            iterations=self.iterations,
        )


class SankeyChart:
    """Render weighted source -> target flows as a Sankey diagram.

    Example
    -------
    >>> chart = SankeyChart(
    ...     [{"source": "Coal", "target": "Solid", "value": 75.6}],
    ...     node_group=lambda d: d["id"].split()[0],
    ...     link_color="source",
    ... )
    >>> chart.save("flows.svg")

    The chart is drawn once, in the constructor. ``nodes`` and ``links`` hold
    the laid out :class:`FlowNode` / :class:`FlowLink` objects; ``node_rects``,
    ``link_paths`` and ``labels`` are selections over the drawn elements.
    """

    def __init__(self, links, nodes=None, config=None, **overrides):
        config = config or FlowChartConfig()
        if overrides:
            config = replace(config, **overrides)
        self.config = config

        links = list(links)
        link_sources = [config.link_source(d) for d in links]
        link_targets = [config.link_target(d) for d in links]
        link_values = [config.link_value(d) for d in links]
        if nodes is None:
            nodes = [{"id": node_id} for node_id in dict.fromkeys(link_sources + link_targets)]
        nodes = list(nodes)
        node_ids = [config.node_id(d) for d in nodes]
        groups = None if config.node_group is None else [config.node_group(d) for d in nodes]

        self._check_references(node_ids, link_sources, link_targets)

        self.nodes = [
            FlowNode(id=node_id, group=None if groups is None else groups[i], index=i)
            for i, node_id in enumerate(node_ids)
        ]
        # join keys and gradient ids depend on index, whatever layout runs
        self.links = [
            FlowLink(source=s, target=t, value=v, index=i)
            for i, (s, t, v) in enumerate(zip(link_sources, link_targets, link_values))
        ]

        link_color = config.link_color
        if groups is None and link_color in GROUP_LINK_COLORS:
            link_color = "currentColor"
        self.link_color = link_color

        self.color = None
        if groups is not None:
            domain = config.node_groups if config.node_groups is not None else groups
            self.color = OrdinalScale(domain, config.colors)

        layout = config.layout or sankey_layout
        self.nodes, self.links = layout(self.nodes, self.links, config.layout_config())

        self.format = resolve_format(config.format)
        # unique per chart so several charts can share one page
        self.uid = f"O-{secrets.token_hex(8)}"

        self.svg = MiniD3SVG(
            width=config.width,
            height=config.height,
            viewBox=(0, 0, config.width, config.height),
            style="max-width: 100%; height: auto; height: intrinsic;",
        )
        self.node_rects = self._build_nodes()
        self.link_paths = self._build_links()
        self.labels = self._build_labels()
        logger.debug(
            "Rendered Sankey chart %s with %d nodes and %d links",
            self.uid,
            len(self.nodes),
            len(self.links),
        )

    # ------------------------------------------------------------------
    # public API helpers
    def to_string(self, pretty=True):
        return self.svg.to_string(pretty=pretty)

    def save(self, path, pretty=True):
        self.svg.save(path, pretty=pretty)

    def close(self):
        """Release the data bound to the drawn elements.

        The SVG stays intact and can still be serialized; only the datum
        lookups used while drawing are dropped.
        """
        self.svg.clear_bindings()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def node_color(self, node):
        if self.color is None:
            return None
        return self.color(node.group)

    def gradient_id(self, link):
        return f"{self.uid}-link-{link.index}"

    # ------------------------------------------------------------------
    @staticmethod
    def _check_references(node_ids, link_sources, link_targets):
        known = set(node_ids)
        if len(known) != len(node_ids):
            dupes = sorted({str(n) for n in node_ids if node_ids.count(n) > 1})
            raise ValueError(f"Duplicate node ids: {', '.join(dupes)}")
        for i, (source, target) in enumerate(zip(link_sources, link_targets)):
            for endpoint in (source, target):
                if endpoint not in known:
                    raise DanglingReferenceError(endpoint, i)

    def _build_nodes(self):
        config = self.config
        layer = self.svg.append(
            "g",
            stroke=config.node_stroke,
            stroke_width=config.node_stroke_width,
            stroke_opacity=config.node_stroke_opacity,
            stroke_linejoin=config.node_stroke_linejoin,
        )
        rects = layer.join(
            "rect",
            self.nodes,
            key=lambda node: node.index,
            enter=lambda sel, node, _: sel.attrs(
                x=node.x0,
                y=node.y0,
                height=node.y1 - node.y0,
                width=node.x1 - node.x0,
            ),
        )
        if self.color is not None:
            rects.attr("fill", lambda node, *_: self.node_color(node))
        if config.node_title is not None:
            rects.append("title").text(lambda node, *_: config.node_title(node, self.format))
        return rects

    def _build_links(self):
        config = self.config
        layer = self.svg.append("g", fill="none", stroke_opacity=config.link_stroke_opacity)
        groups = layer.join("g", self.links, key=lambda link: link.index)
        if config.link_mix_blend_mode:
            groups.style(mix_blend_mode=config.link_mix_blend_mode)

        if self.link_color == "source-target":
            gradients = groups.append("linearGradient", gradientUnits="userSpaceOnUse")
            gradients.attrs(
                id=lambda link, *_: self.gradient_id(link),
                x1=lambda link, *_: link.source.x1,
                x2=lambda link, *_: link.target.x0,
            )
            gradients.append("stop", offset="0%").attr(
                "stop_color", lambda link, *_: self.node_color(link.source)
            )
            gradients.append("stop", offset="100%").attr(
                "stop_color", lambda link, *_: self.node_color(link.target)
            )

        paths = groups.append("path")
        paths.attr("d", lambda link, *_: config.link_path(link))
        paths.attr("stroke", self._link_stroke())
        paths.attr("stroke_width", lambda link, *_: max(1, link.width))
        if config.link_title is not None:
            paths.append("title").text(lambda link, *_: config.link_title(link, self.format))
        return paths

    def _link_stroke(self):
        mode = self.link_color
        if mode == "source-target":
            return lambda link, *_: f"url(#{self.gradient_id(link)})"
        if mode == "source":
            return lambda link, *_: self.node_color(link.source)
        if mode == "target":
            return lambda link, *_: self.node_color(link.target)
        return mode

    def _build_labels(self):
        config = self.config
        if config.node_label is None:
            return None
        half = config.width / 2
        layer = self.svg.append(
            "g",
            font_family=config.label_font_family,
            font_size=config.label_font_size,
        )
        texts = layer.join("text", self.nodes, key=lambda node: node.index)
        texts.attrs(
            x=lambda node, *_: (
                node.x1 + config.node_label_padding
                if node.x0 < half
                else node.x0 - config.node_label_padding
            ),
            y=lambda node, *_: (node.y1 + node.y0) / 2,
            dy="0.35em",
            text_anchor=lambda node, *_: "start" if node.x0 < half else "end",
        )
        texts.text(lambda node, *_: config.node_label(node))
        return texts
