"""Keyed enter/update/exit reconciliation of SVG children.

A :class:`SceneReconciler` owns the key -> element mapping for the ``tag``
children of one parent element. Each :meth:`SceneReconciler.reconcile` pass
diffs an incoming sequence against that mapping:

* enter  -- new key: create the element and run ``initialize``
* update -- kept key: rebind the datum and run ``update`` on the same element
* exit   -- vanished key: remove the element

``index`` handed to both callbacks is the position in the incoming sequence,
so anything derived from it (x offsets, for instance) is recomputed for every
visible element on every pass.
"""

import logging
from dataclasses import dataclass, field

from .selection import Selection, _el, _tag_name

logger = logging.getLogger(__name__)


def _identity(item):
    return item


@dataclass
class JoinResult:
    entered: list = field(default_factory=list)
    updated: list = field(default_factory=list)
    exited: list = field(default_factory=list)
    selection: Selection = field(default_factory=lambda: Selection([]))

    @property
    def changed(self):
        return bool(self.entered or self.exited)


def partition_keys(previous, incoming):
    """Split keys into (enter, update, exit) lists.

    ``enter`` and ``update`` follow the incoming order, ``exit`` the previous
    order. Repeated incoming keys are reported once.
    """
    previous = list(previous)
    seen_previous = set(previous)
    enter, update, seen = [], [], set()
    for key in incoming:
        if key in seen:
            continue
        seen.add(key)
        if key in seen_previous:
            update.append(key)
        else:
            enter.append(key)
    exit_ = [key for key in previous if key not in seen]
    return enter, update, exit_


class SceneReconciler:
    def __init__(self, parent, tag, key=None):
        self.parent = parent
        self.tag = tag
        self.key = key or _identity
        self._elements = {}
        # elements sharing a key with a managed one; removed on the next pass
        self._strays = []

    @classmethod
    def adopt(cls, parent, tag, key=None):
        """Build a reconciler that takes over existing ``tag`` children of ``parent``.

        Children without bound data are left alone.
        """
        reconciler = cls(parent, tag, key=key)
        for child in parent.iterchildren(tag=_tag_name(tag)):
            datum = Selection._get_data(child)
            if datum is None:
                continue
            k = reconciler.key(datum)
            if k in reconciler._elements:
                reconciler._strays.append((k, child))
                continue
            reconciler._elements[k] = child
        return reconciler

    def __len__(self):
        return len(self._elements)

    def __contains__(self, key):
        return key in self._elements

    @property
    def keys(self):
        return list(self._elements)

    @property
    def elements(self):
        return list(self._elements.values())

    def element(self, key):
        return self._elements.get(key)

    def reconcile(self, items, initialize=None, update=None):
        """Bring the managed children in line with ``items``.

        ``initialize(selection, item, index)`` runs on entering elements and
        ``update(selection, item, index)`` on kept ones; both receive a
        one-element :class:`Selection`.
        """
        items = list(items)
        result = JoinResult()
        current = {}
        strays = []
        ordered = []

        for k, element in self._strays:
            Selection([element]).remove()
            result.exited.append(k)

        for index, item in enumerate(items):
            k = self.key(item)
            existing = self._elements.get(k)
            if existing is not None and k not in current:
                Selection._set_data(existing, item)
                if update is not None:
                    update(Selection([existing]), item, index)
                current[k] = existing
                ordered.append(existing)
                result.updated.append(k)
                continue

            if k in current:
                logger.warning("Duplicate key %r in join data; entering a new element", k)
            element = _el(self.tag)
            self.parent.append(element)
            Selection._set_data(element, item)
            if initialize is not None:
                initialize(Selection([element]), item, index)
            if k in current:
                strays.append((k, element))
            else:
                current[k] = element
            ordered.append(element)
            result.entered.append(k)

        for k, element in self._elements.items():
            if current.get(k) is element:
                continue
            Selection([element]).remove()
            result.exited.append(k)

        self._order(ordered)
        self._elements = current
        self._strays = strays
        result.selection = Selection(ordered)
        logger.debug(
            "Reconciled <%s>: %d entered, %d updated, %d exited",
            self.tag,
            len(result.entered),
            len(result.updated),
            len(result.exited),
        )
        return result

    def clear(self):
        """Remove every managed element."""
        Selection(list(self._elements.values())).remove()
        Selection([element for _, element in self._strays]).remove()
        self._elements = {}
        self._strays = []

    def _order(self, ordered):
        # walk backwards so each element lands right before its successor
        nxt = None
        for element in reversed(ordered):
            if nxt is not None and element.getnext() is not nxt:
                nxt.addprevious(element)
            nxt = element
