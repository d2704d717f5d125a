# pip install lxml cssselect
from lxml import etree
from lxml.cssselect import CSSSelector
from cssselect import GenericTranslator
from functools import lru_cache

SVG_NS = "http://www.w3.org/2000/svg"
NSMAP = {None: SVG_NS}


class _SVGDefaultNamespaceTranslator(GenericTranslator):
    """Ensure bare element selectors target the SVG namespace."""

    def __init__(self, default_prefix="svg"):
        super().__init__()
        self._default_prefix = default_prefix

    def xpath_element(self, selector):
        if (
            self._default_prefix
            and selector.namespace is None
            and selector.element is not None
        ):
            selector = selector.__class__(self._default_prefix, selector.element)
        return super().xpath_element(selector)


_SVG_NAMESPACE_PREFIX = "svg"
_SVG_CSS_TRANSLATOR = _SVGDefaultNamespaceTranslator(default_prefix=_SVG_NAMESPACE_PREFIX)
_SVG_CSS_NAMESPACES = {_SVG_NAMESPACE_PREFIX: SVG_NS}


@lru_cache(maxsize=128)
def _svg_css_selector(css):
    return CSSSelector(
        css,
        translator=_SVG_CSS_TRANSLATOR,
        namespaces=_SVG_CSS_NAMESPACES,
    )


def _normalize_attr_name(name):
    """Convert pythonic attr names (stroke_opacity) into SVG attrs (stroke-opacity)."""
    return name.replace("_", "-")


def _tag_name(tag):
    return f"{{{SVG_NS}}}{tag}"


def _el(tag, **attrs):
    el = etree.Element(_tag_name(tag), nsmap=NSMAP)
    for k, v in attrs.items():
        if v is None:
            continue
        el.set(_normalize_attr_name(k), _format_value(v))
    return el


def _format_value(value):
    # viewBox and friends are written as space separated lists
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


class Selection:
    _data_binding = {}

    def __init__(self, elements):
        # elements: list[etree._Element]
        self.elements = elements

    def __len__(self):
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)

    @property
    def empty(self):
        return not self.elements

    @classmethod
    def _get_data(cls, el):
        binding = cls._data_binding.get(id(el))
        if binding and binding[0] is el:
            return binding[1]
        return None

    @classmethod
    def _set_data(cls, el, value):
        cls._data_binding[id(el)] = (el, value)

    @classmethod
    def _clear_data(cls, el):
        binding = cls._data_binding.get(id(el))
        if binding and binding[0] is el:
            del cls._data_binding[id(el)]

    def append(self, tag, **attrs):
        """Append a child to every element in the selection; returns a new Selection of appended nodes.

        Appended children inherit the parent's bound datum, like d3's ``selection.append``.
        """
        kids = []
        for el in self.elements:
            child = _el(tag, **attrs)
            el.append(child)
            datum = Selection._get_data(el)
            if datum is not None:
                Selection._set_data(child, datum)
            kids.append(child)
        return Selection(kids)

    def attr(self, name, value=None):
        """
        Set an attribute on all elements (returns self), or get the first value if value is None.
        """
        attr_name = _normalize_attr_name(name)
        if value is None:
            return self.elements[0].get(attr_name) if self.elements else None
        for idx, el in enumerate(self.elements):
            val = value
            if callable(value):
                val = value(Selection._get_data(el), idx, el)
            if val is None:
                continue
            el.set(attr_name, _format_value(val))
        return self

    def attrs(self, **kvs):
        """Set multiple attributes at once."""
        for k, v in kvs.items():
            self.attr(k, v)
        return self

    def style(self, **kvs):
        """Merge into the 'style' attribute: style(mix_blend_mode='multiply')."""
        for idx, el in enumerate(self.elements):
            current = {}
            if el.get("style"):
                for pair in el.get("style").split(";"):
                    if pair.strip():
                        k, _, v = pair.partition(":")
                        current[k.strip()] = v.strip()
            for k, v in kvs.items():
                val = v
                if callable(v):
                    val = v(Selection._get_data(el), idx, el)
                if val is None:
                    continue
                current[_normalize_attr_name(k)] = str(val)
            el.set("style", ";".join(f"{k}:{v}" for k, v in current.items()))
        return self

    def text(self, s):
        for idx, el in enumerate(self.elements):
            val = s
            if callable(s):
                val = s(Selection._get_data(el), idx, el)
            if val is None:
                continue
            el.text = str(val)
        return self

    def datum(self, value=None):
        """Get or set bound data on the selection."""
        if value is None:
            return Selection._get_data(self.elements[0]) if self.elements else None
        for idx, el in enumerate(self.elements):
            current = Selection._get_data(el)
            new_val = value(current, idx, el) if callable(value) else value
            Selection._set_data(el, new_val)
        return self

    def data(self, data_iterable):
        """Bind a sequence of data objects to the selection (lengths must match)."""
        data_list = list(data_iterable)
        if len(data_list) != len(self.elements):
            raise ValueError(
                "MiniD3 Selection.data requires len(data) == number of selected elements"
            )
        for el, datum in zip(self.elements, data_list):
            Selection._set_data(el, datum)
        return self

    def remove(self):
        """Detach every element from its parent and drop its bound datum."""
        for el in self.elements:
            parent = el.getparent()
            if parent is not None:
                parent.remove(el)
            Selection._clear_data(el)
        return self

    def join(self, tag, data, key=None, enter=None, update=None):
        """Keyed data join of ``tag`` children under the first element.

        ``enter(selection, datum, index)`` initializes new elements and
        ``update(selection, datum, index)`` mutates kept ones; children whose
        key is absent from ``data`` are removed. Returns a Selection of the
        joined elements in data order.
        """
        from .reconcile import SceneReconciler

        if not self.elements:
            return Selection([])
        reconciler = SceneReconciler.adopt(self.elements[0], tag, key=key)
        result = reconciler.reconcile(data, initialize=enter, update=update)
        return result.selection


class MiniD3SVG:
    def __init__(self, width=800, height=600, viewBox=None, bg=None, style=None):
        self.root = _el("svg", width=str(width), height=str(height))
        if viewBox:
            self.root.set("viewBox", _format_value(viewBox))
        if style:
            self.root.set("style", style)
        if bg:
            # rect background
            rect = _el("rect", x="0", y="0", width="100%", height="100%", fill=bg)
            self.root.append(rect)

    def select_all(self, css):
        sel = _svg_css_selector(css)
        return Selection(sel(self.root))

    def append(self, tag, **attrs):
        child = _el(tag, **attrs)
        self.root.append(child)
        return Selection([child])

    def clear_bindings(self):
        """Drop the data bound to every element of this document.

        Bindings live in a table shared by all selections; call this once a
        document is no longer drawn to so its elements can be freed.
        """
        for el in self.root.iter():
            Selection._clear_data(el)

    def to_string(self, pretty=True):
        return etree.tostring(self.root, pretty_print=pretty, encoding="unicode")

    def save(self, path, pretty=True):
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_string(pretty=pretty))
