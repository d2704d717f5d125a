"""Exception hierarchy for d3_svg_views.

Every error carries a ``context`` dict with the values that triggered it.
"""


class D3SvgViewsError(Exception):
    """Base class for all package errors."""

    def __init__(self, message, context=None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class DanglingReferenceError(D3SvgViewsError):
    """A link endpoint names a node that was neither declared nor inferred."""

    def __init__(self, node_id, link_index=None):
        context = {"node_id": node_id}
        if link_index is not None:
            context["link_index"] = link_index
        super().__init__(f"missing: {node_id}", context=context)
        self.node_id = node_id
        self.link_index = link_index


class CircularLinkError(D3SvgViewsError):
    """The flow graph contains a cycle, so node depths are undefined."""


class InsufficientPoolError(D3SvgViewsError):
    """More distinct samples were requested than the pool holds."""

    def __init__(self, requested, available):
        super().__init__(
            f"cannot sample {requested} distinct symbols from a pool of {available}",
            context={"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available
