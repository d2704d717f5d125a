import re

SCHEME_TABLEAU10 = (
    "#4e79a7",
    "#f28e2c",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc949",
    "#af7aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ab",
)


class OrdinalScale:
    """Map discrete inputs to items in a range list (wraps around).

    The domain keeps first-seen order and ignores repeats, so a column of
    per-node group tags can be passed straight in.
    """

    def __init__(self, domain=None, range_=None):
        self._domain = []
        self._index = {}
        self.domain(domain or [])
        self._range = list(range_ or [])

    def domain(self, values=None):
        if values is None:
            return list(self._domain)
        self._domain = []
        self._index = {}
        for value in values:
            self._intern(value)
        return self

    def range(self, values=None):
        if values is None:
            return list(self._range)
        self._range = list(values)
        return self

    def _intern(self, value):
        idx = self._index.get(value)
        if idx is None:
            idx = self._index[value] = len(self._domain)
            self._domain.append(value)
        return idx

    def __call__(self, value):
        if not self._range:
            raise ValueError("OrdinalScale requires a non-empty range list")
        return self._range[self._intern(value) % len(self._range)]


def scale_ordinal(domain=None, range_=None):
    return OrdinalScale(domain, range_)


_TRIM_RE = re.compile(r"^(?P<head>[^~]*)~(?P<tail>.*)$")
_PRECISION_RE = re.compile(r"\.\d+$")
_FORMAT_TYPES = frozenset("bcdeEfFgGnosxX%")


def format_number(specifier=","):
    """Return a formatter for a d3-format style specifier.

    The specifier is Python's format mini-language with d3's ``~`` flag, which
    trims insignificant trailing zeros: ``format_number(",.1~f")(1234.0)``
    gives ``"1,234"`` and ``format_number(",")(1234.5)`` gives ``"1,234.5"``.
    Without a type letter the value is shown with 12 significant digits and
    trimmed, so ``format_number(",")(0.1 + 0.2)`` gives ``"0.3"``.
    """
    trim = False
    match = _TRIM_RE.match(specifier)
    if match:
        trim = True
        specifier = match.group("head") + match.group("tail")
    if not specifier or specifier[-1] not in _FORMAT_TYPES:
        if not _PRECISION_RE.search(specifier):
            specifier += ".12"
        specifier += "g"
        trim = True

    def fmt(value):
        text = format(value, specifier)
        if trim and "." in text:
            mantissa, exp_sep, exponent = _split_exponent(text)
            mantissa = mantissa.rstrip("0").rstrip(".")
            text = mantissa + exp_sep + exponent
        return text

    return fmt


def _split_exponent(text):
    match = re.search(r"[eE%]", text)
    if not match:
        return text, "", ""
    i = match.start()
    return text[:i], text[i], text[i + 1:]


def resolve_format(fmt):
    """Accept either a callable or a specifier string."""
    if callable(fmt):
        return fmt
    return format_number(fmt)
