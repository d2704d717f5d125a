"""Minimal example of keyed joins with the MiniD3 selection API."""

from d3_svg_views import MiniD3SVG


def main():
    svg = MiniD3SVG(width=320, height=120, bg="#f8f8f8")
    group = svg.append("g", transform="translate(20,40)", font_family="monospace")

    def enter(sel, d, i):
        sel.attrs(x=i * 24, y=0).text(d)

    def update(sel, d, i):
        sel.attrs(x=i * 24, fill="green")

    group.join("text", ["a", "c", "f", "k"], enter=enter, update=update)
    # "c" and "k" stay (and turn green), "a" and "f" go, "b" and "z" arrive
    group.join("text", ["b", "c", "k", "z"], enter=enter, update=update)

    svg.save("basic_join.svg")
    svg.clear_bindings()


if __name__ == "__main__":
    main()
