from lxml import etree

import pytest

from d3_svg_views import (
    ENERGY_FLOWS,
    SCHEME_TABLEAU10,
    SVG_NS,
    DanglingReferenceError,
    FlowChartConfig,
    FlowLink,
    FlowNode,
    SankeyChart,
    Selection,
    energy_chart,
    first_word,
    format_number,
    sankey_layout,
)

LINKS = [
    {"source": "Coal reserves", "target": "Coal", "value": 63.965},
    {"source": "Coal imports", "target": "Coal", "value": 11.606},
    {"source": "Coal", "target": "Solid", "value": 75.571},
]


def _parse(chart):
    return etree.fromstring(chart.to_string(pretty=False).encode("utf-8"))


def _find_all(root, tag):
    return root.findall(f".//{{{SVG_NS}}}{tag}")


def test_nodes_are_inferred_from_links_in_first_seen_order():
    chart = SankeyChart(LINKS)
    assert [n.id for n in chart.nodes] == ["Coal reserves", "Coal imports", "Coal", "Solid"]


def test_target_only_node_is_inferred():
    chart = SankeyChart([{"source": "X", "target": "Y", "value": 5}])
    assert [n.id for n in chart.nodes] == ["X", "Y"]
    assert len(chart.node_rects) == 2


def test_dangling_reference_fails_before_layout():
    calls = []

    def recording_layout(nodes, links, config):
        calls.append(config)
        return sankey_layout(nodes, links, config)

    with pytest.raises(DanglingReferenceError) as excinfo:
        SankeyChart(
            [{"source": "A", "target": "B", "value": 1}],
            nodes=[{"id": "A"}],
            layout=recording_layout,
        )
    assert excinfo.value.node_id == "B"
    assert calls == []


def test_duplicate_node_ids_are_rejected():
    with pytest.raises(ValueError):
        SankeyChart(
            [{"source": "A", "target": "B", "value": 1}],
            nodes=[{"id": "A"}, {"id": "B"}, {"id": "A"}],
        )


def test_custom_layout_receives_extent_and_options():
    seen = {}

    def recording_layout(nodes, links, config):
        seen["config"] = config
        return sankey_layout(nodes, links, config)

    SankeyChart(LINKS, layout=recording_layout, width=300, height=200, align="left")
    config = seen["config"]
    assert config.extent == ((1, 5), (299, 195))
    assert config.node_width == 15
    assert config.node_padding == 10
    assert config.align == "left"


def test_rect_per_node_and_path_per_link():
    chart = SankeyChart(LINKS)
    root = _parse(chart)
    rects = _find_all(root, "rect")
    paths = _find_all(root, "path")
    assert len(rects) == 4
    assert len(paths) == 3
    for rect, node in zip(rects, chart.nodes):
        assert float(rect.get("x")) == pytest.approx(node.x0)
        assert float(rect.get("height")) == pytest.approx(node.y1 - node.y0)
    assert root.get("viewBox") == "0 0 640 400"


def test_node_layer_stroke_defaults():
    chart = SankeyChart(LINKS)
    layer = chart.node_rects.elements[0].getparent()
    assert layer.get("stroke") == "currentColor"
    assert layer.get("stroke-width") is None


def test_without_groups_links_use_current_color():
    chart = SankeyChart(LINKS)
    assert chart.link_color == "currentColor"
    assert all(p.get("stroke") == "currentColor" for p in chart.link_paths)
    assert all(r.get("fill") is None for r in chart.node_rects)
    assert not _find_all(_parse(chart), "linearGradient")


def test_source_target_mode_creates_unique_gradients():
    chart = SankeyChart(LINKS, node_group=first_word)
    root = _parse(chart)
    gradients = _find_all(root, "linearGradient")
    ids = [g.get("id") for g in gradients]
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert all(i.startswith(f"{chart.uid}-link-") for i in ids)
    for gradient, path, link in zip(gradients, chart.link_paths, chart.links):
        assert path.get("stroke") == f"url(#{gradient.get('id')})"
        assert gradient.get("gradientUnits") == "userSpaceOnUse"
        start, end = gradient.findall(f"{{{SVG_NS}}}stop")
        assert start.get("offset") == "0%"
        assert start.get("stop-color") == chart.node_color(link.source)
        assert end.get("stop-color") == chart.node_color(link.target)


def test_two_charts_never_share_gradient_ids():
    a = SankeyChart(LINKS, node_group=first_word)
    b = SankeyChart(LINKS, node_group=first_word)
    assert a.uid != b.uid


def test_source_and_target_color_modes():
    chart = SankeyChart(LINKS, node_group=lambda d: d["id"], link_color="source")
    for path, link in zip(chart.link_paths, chart.links):
        assert path.get("stroke") == chart.node_color(link.source)

    chart = SankeyChart(LINKS, node_group=lambda d: d["id"], link_color="target")
    for path, link in zip(chart.link_paths, chart.links):
        assert path.get("stroke") == chart.node_color(link.target)


def test_static_link_color_and_group_palette():
    chart = SankeyChart(LINKS, node_group=first_word, link_color="#999")
    assert all(p.get("stroke") == "#999" for p in chart.link_paths)
    # every node starts with "Coal" except "Solid"
    fills = [r.get("fill") for r in chart.node_rects]
    assert fills[0] == SCHEME_TABLEAU10[0]
    assert fills[-1] == SCHEME_TABLEAU10[1]


def test_link_width_has_a_floor_of_one_pixel():
    links = [
        {"source": "A", "target": "B", "value": 1000},
        {"source": "A", "target": "C", "value": 0.001},
    ]
    chart = SankeyChart(links)
    widths = [float(p.get("stroke-width")) for p in chart.link_paths]
    assert widths[1] == 1


def test_link_group_blend_mode_and_opacity():
    chart = SankeyChart(LINKS)
    group = chart.link_paths.elements[0].getparent()
    assert group.get("style") == "mix-blend-mode:multiply"
    assert group.getparent().get("stroke-opacity") == "0.5"
    assert group.getparent().get("fill") == "none"


def test_titles_use_formatter():
    chart = SankeyChart(LINKS, format=",.1f")
    root = _parse(chart)
    titles = [t.text for t in _find_all(root, "title")]
    assert "Coal\n75.6" in titles
    assert "Coal → Solid\n75.6" in titles


def test_titles_can_be_disabled():
    chart = SankeyChart(LINKS, node_title=None, link_title=None)
    assert not _find_all(_parse(chart), "title")


def test_labels_sit_beside_nodes():
    chart = SankeyChart([{"source": "X", "target": "Y", "value": 5}])
    left, right = chart.labels.elements
    assert left.text == "X"
    assert left.get("text-anchor") == "start"
    assert float(left.get("x")) == pytest.approx(chart.nodes[0].x1 + 6)
    assert right.get("text-anchor") == "end"
    assert float(right.get("x")) == pytest.approx(chart.nodes[1].x0 - 6)
    assert left.get("dy") == "0.35em"
    assert left.getparent().get("font-family") == "sans-serif"


def test_labels_can_be_disabled():
    chart = SankeyChart(LINKS, node_label=None)
    assert chart.labels is None
    assert not _find_all(_parse(chart), "text")


def test_unknown_alignment_falls_back_to_justify():
    justified = SankeyChart(LINKS)
    odd = SankeyChart(LINKS, align="diagonal")
    assert [n.x0 for n in odd.nodes] == [n.x0 for n in justified.nodes]


def test_config_object_and_overrides_combine():
    config = FlowChartConfig(width=300, height=150)
    chart = SankeyChart(LINKS, config=config, height=180)
    assert chart.config.width == 300
    assert chart.config.height == 180
    assert config.height == 150


def test_unknown_option_is_rejected():
    with pytest.raises(TypeError):
        SankeyChart(LINKS, colour="red")


def test_format_number_trims_zeros():
    fmt = format_number(",.1~f")
    assert fmt(1234.0) == "1,234"
    assert fmt(1234.56) == "1,234.6"
    assert format_number(",")(1234.5) == "1,234.5"
    assert format_number(".2~e")(12000) == "1.2e+04"


def test_energy_chart():
    chart = energy_chart()
    ids = {n.id for n in chart.nodes}
    assert len(chart.links) == len(ENERGY_FLOWS)
    assert {"Nuclear", "Electricity grid", "Losses"} <= ids
    assert chart.svg.root.get("width") == "600"
    assert chart.link_color == "source"
    grid = next(n for n in chart.nodes if n.id == "Electricity grid")
    assert chart.format(grid.value).endswith(" TWh")
    assert first_word({"id": "Heating and cooling - homes"}) == "Heating"
    assert first_word({"id": "Agricultural 'waste'"}) == "Agricultural"


def test_default_format_hides_float_noise():
    assert format_number(",")(0.1 + 0.2) == "0.3"
    assert format_number(",")(1234567) == "1,234,567"
    assert format_number("")(0.5) == "0.5"

    chart = SankeyChart(
        [
            {"source": "A", "target": "C", "value": 0.1},
            {"source": "B", "target": "C", "value": 0.2},
        ]
    )
    titles = [t.text for t in _find_all(_parse(chart), "title")]
    assert "C\n0.3" in titles


def test_custom_layout_without_indexes_keeps_gradient_ids_unique():
    def geometry_only(nodes, links, config):
        # lay out copies, then copy positions back without touching index
        copies = [FlowNode(id=n.id, group=n.group) for n in nodes]
        copy_links = [FlowLink(source=l.source, target=l.target, value=l.value) for l in links]
        sankey_layout(copies, copy_links, config)
        by_id = {n.id: n for n in nodes}
        for node, laid in zip(nodes, copies):
            node.value = laid.value
            node.x0, node.y0, node.x1, node.y1 = laid.x0, laid.y0, laid.x1, laid.y1
        for link, laid in zip(links, copy_links):
            link.source = by_id[laid.source.id]
            link.target = by_id[laid.target.id]
            link.width, link.y0, link.y1 = laid.width, laid.y0, laid.y1
        return nodes, links

    chart = SankeyChart(LINKS, node_group=first_word, layout=geometry_only)
    ids = [g.get("id") for g in _find_all(_parse(chart), "linearGradient")]
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert [n.index for n in chart.nodes] == [0, 1, 2, 3]
    assert len(chart.node_rects) == 4


def test_closing_charts_releases_bindings():
    baseline = len(Selection._data_binding)
    for _ in range(5):
        with SankeyChart(LINKS, node_group=first_word) as chart:
            assert len(Selection._data_binding) > baseline
    assert len(Selection._data_binding) == baseline
    # still serializable after close
    assert len(_find_all(_parse(chart), "rect")) == 4
