"""UK energy flows (TWh), the reference dataset for the Sankey chart."""

import re

from .flow_chart import SankeyChart
from .scales import format_number

_ENERGY_ROWS = (
    ("Agricultural 'waste'", "Bio-conversion", 124.729),
    ("Bio-conversion", "Liquid", 0.597),
    ("Bio-conversion", "Losses", 26.862),
    ("Bio-conversion", "Solid", 280.322),
    ("Bio-conversion", "Gas", 81.144),
    ("Biofuel imports", "Liquid", 35),
    ("Biomass imports", "Solid", 35),
    ("Coal imports", "Coal", 11.606),
    ("Coal reserves", "Coal", 63.965),
    ("Coal", "Solid", 75.571),
    ("District heating", "Industry", 10.639),
    ("District heating", "Heating and cooling - commercial", 22.505),
    ("District heating", "Heating and cooling - homes", 46.184),
    ("Electricity grid", "Over generation / exports", 104.453),
    ("Electricity grid", "Heating and cooling - homes", 113.726),
    ("Electricity grid", "H2 conversion", 27.14),
    ("Electricity grid", "Industry", 342.165),
    ("Electricity grid", "Road transport", 37.797),
    ("Electricity grid", "Agriculture", 4.412),
    ("Electricity grid", "Heating and cooling - commercial", 40.858),
    ("Electricity grid", "Losses", 56.691),
    ("Electricity grid", "Rail transport", 7.863),
    ("Electricity grid", "Lighting & appliances - commercial", 90.008),
    ("Electricity grid", "Lighting & appliances - homes", 93.494),
    ("Gas imports", "Ngas", 40.719),
    ("Gas reserves", "Ngas", 82.233),
    ("Gas", "Heating and cooling - commercial", 0.129),
    ("Gas", "Losses", 1.401),
    ("Gas", "Thermal generation", 151.891),
    ("Gas", "Agriculture", 2.096),
    ("Gas", "Industry", 48.58),
    ("Geothermal", "Electricity grid", 7.013),
    ("H2 conversion", "H2", 20.897),
    ("H2 conversion", "Losses", 6.242),
    ("H2", "Road transport", 20.897),
    ("Hydro", "Electricity grid", 6.995),
    ("Liquid", "Industry", 121.066),
    ("Liquid", "International shipping", 128.69),
    ("Liquid", "Road transport", 135.835),
    ("Liquid", "Domestic aviation", 14.458),
    ("Liquid", "International aviation", 206.267),
    ("Liquid", "Agriculture", 3.64),
    ("Liquid", "National navigation", 33.218),
    ("Liquid", "Rail transport", 4.413),
    ("Marine algae", "Bio-conversion", 4.375),
    ("Ngas", "Gas", 122.952),
    ("Nuclear", "Thermal generation", 839.978),
    ("Oil imports", "Oil", 504.287),
    ("Oil reserves", "Oil", 107.703),
    ("Oil", "Liquid", 611.99),
    ("Other waste", "Solid", 56.587),
    ("Other waste", "Bio-conversion", 77.81),
    ("Pumped heat", "Heating and cooling - homes", 193.026),
    ("Pumped heat", "Heating and cooling - commercial", 70.672),
    ("Solar PV", "Electricity grid", 59.901),
    ("Solar Thermal", "Heating and cooling - homes", 19.263),
    ("Solar", "Solar Thermal", 19.263),
    ("Solar", "Solar PV", 59.901),
    ("Solid", "Agriculture", 0.882),
    ("Solid", "Thermal generation", 400.12),
    ("Solid", "Industry", 46.477),
    ("Thermal generation", "Electricity grid", 525.531),
    ("Thermal generation", "Losses", 787.129),
    ("Thermal generation", "District heating", 79.329),
    ("Tidal", "Electricity grid", 9.452),
    ("UK land based bioenergy", "Bio-conversion", 182.01),
    ("Wave", "Electricity grid", 19.013),
    ("Wind", "Electricity grid", 289.366),
)

ENERGY_FLOWS = [
    {"source": source, "target": target, "value": value}
    for source, target, value in _ENERGY_ROWS
]

_WORD_SPLIT = re.compile(r"\W")


def first_word(node):
    """Group a node by the first word of its id ("Electricity grid" -> "Electricity")."""
    node_id = node["id"] if isinstance(node, dict) else node.id
    return _WORD_SPLIT.split(node_id)[0]


def twh_format():
    fmt = format_number(",.1~f")
    return lambda value: f"{fmt(value)} TWh"


def energy_chart(links=None, **overrides):
    """The energy Sankey as published: first-word colors, source-colored links, 600x600."""
    options = dict(
        node_group=first_word,
        align="justify",
        link_color="source",
        format=twh_format(),
        width=600,
        height=600,
    )
    options.update(overrides)
    return SankeyChart(ENERGY_FLOWS if links is None else links, **options)
