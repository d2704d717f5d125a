"""Render the UK energy-flow Sankey diagram to SVG."""

import logging

from d3_svg_views import energy_chart


def main():
    logging.basicConfig(level=logging.INFO)
    # swap to gradients between group colors:
    # energy_chart(link_color="source-target")
    with energy_chart() as chart:
        chart.save("energy_sankey.svg")


if __name__ == "__main__":
    main()
