"""Small D3-style SVG views built on lxml.

* :mod:`.selection` -- MiniD3 selections over an SVG tree
* :mod:`.reconcile` -- keyed enter/update/exit joins
* :mod:`.letters` -- the animated random-letters row
* :mod:`.sankey` / :mod:`.flow_chart` -- layered flow layout and Sankey chart
"""

from .errors import (
    CircularLinkError,
    D3SvgViewsError,
    DanglingReferenceError,
    InsufficientPoolError,
)
from .selection import NSMAP, SVG_NS, MiniD3SVG, Selection
from .reconcile import JoinResult, SceneReconciler, partition_keys
from .scales import (
    SCHEME_TABLEAU10,
    OrdinalScale,
    format_number,
    resolve_format,
    scale_ordinal,
)
from .sankey import (
    FlowLink,
    FlowNode,
    LayoutConfig,
    SankeyLayout,
    resolve_align,
    sankey_center,
    sankey_justify,
    sankey_layout,
    sankey_left,
    sankey_link_horizontal,
    sankey_right,
)
from .flow_chart import FlowChartConfig, SankeyChart
from .letters import AnimatorConfig, AnimatorState, LetterAnimator, random_letters
from .datasets import ENERGY_FLOWS, energy_chart, first_word

__version__ = "0.1.0"

__all__ = [
    "AnimatorConfig",
    "AnimatorState",
    "CircularLinkError",
    "D3SvgViewsError",
    "DanglingReferenceError",
    "ENERGY_FLOWS",
    "FlowChartConfig",
    "FlowLink",
    "FlowNode",
    "InsufficientPoolError",
    "JoinResult",
    "LayoutConfig",
    "LetterAnimator",
    "MiniD3SVG",
    "NSMAP",
    "OrdinalScale",
    "SCHEME_TABLEAU10",
    "SVG_NS",
    "SankeyChart",
    "SankeyLayout",
    "SceneReconciler",
    "Selection",
    "energy_chart",
    "first_word",
    "format_number",
    "partition_keys",
    "random_letters",
    "resolve_align",
    "resolve_format",
    "sankey_center",
    "sankey_justify",
    "sankey_layout",
    "sankey_left",
    "sankey_link_horizontal",
    "sankey_right",
    "scale_ordinal",
]
