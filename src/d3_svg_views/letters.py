"""Animated row of random letters, re-joined on a fixed timer.

Each tick samples a sorted handful of distinct letters and reconciles them
against the ``<text>`` elements already on screen: new letters are placed and
written, surviving letters slide to their new slot and turn the highlight
color, and letters that were not drawn again are removed.

>>> animator = LetterAnimator()
>>> animator.tick().entered  # doctest: +SKIP
['b', 'f', 'k', 'm', 'q', 'x']
>>> asyncio.run(animator.run(max_ticks=3))  # doctest: +SKIP
"""

import asyncio
import enum
import logging
import random
import string
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass

from .errors import InsufficientPoolError
from .reconcile import SceneReconciler
from .selection import MiniD3SVG

logger = logging.getLogger(__name__)


def _check_bounds(alphabet, min_count, max_count):
    pool = sorted(set(alphabet))
    if min_count < 0 or min_count > max_count:
        raise ValueError(f"invalid sample bounds [{min_count}, {max_count}]")
    if max_count > len(pool):
        raise InsufficientPoolError(max_count, len(pool))
    return pool


def random_letters(rng=None, alphabet=string.ascii_lowercase, min_count=6, max_count=25):
    """Sample between ``min_count`` and ``max_count`` distinct symbols, sorted."""
    rng = rng or random
    pool = _check_bounds(alphabet, min_count, max_count)
    count = rng.randint(min_count, max_count)
    return sorted(rng.sample(pool, count))



@dataclass
class AnimatorConfig:
    alphabet: str = string.ascii_lowercase
    min_count: int = 6
    max_count: int = 25
    spacing: float = 16
    baseline: float = 30
    width: float = 1000
    height: float = 33
    # seconds between ticks
    interval: float = 1.0
    highlight: str = "green"


class AnimatorState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class LetterAnimator:
    def __init__(self, config=None, rng=None, on_frame=None):
        self.config = config or AnimatorConfig()
        cfg = self.config
        # a config the sampler would reject fails here, not inside the task
        _check_bounds(cfg.alphabet, cfg.min_count, cfg.max_count)
        self.rng = rng or random.Random()
        self.on_frame = on_frame
        self.svg = MiniD3SVG(width=self.config.width, height=self.config.height)
        self.reconciler = SceneReconciler(self.svg.root, "text")
        self.state = AnimatorState.STOPPED
        self.ticks = 0
        self._task = None

    def sample(self):
        cfg = self.config
        return random_letters(
            self.rng,
            alphabet=cfg.alphabet,
            min_count=cfg.min_count,
            max_count=cfg.max_count,
        )

    def _enter(self, sel, letter, index):
        sel.attrs(x=index * self.config.spacing, y=self.config.baseline).text(letter)

    def _update(self, sel, letter, index):
        sel.attrs(x=index * self.config.spacing, fill=self.config.highlight)

    def tick(self, letters=None):
        """Reconcile one frame; samples fresh letters unless given."""
        if letters is None:
            letters = self.sample()
        result = self.reconciler.reconcile(letters, initialize=self._enter, update=self._update)
        self.ticks += 1
        logger.debug("Tick %d: %s", self.ticks, "".join(letters))
        if self.on_frame is not None:
            self.on_frame(self.svg, result)
        return result

    async def run(self, max_ticks=None):
        """Tick, then sleep ``interval``; repeat until cancelled or ``max_ticks`` ran."""
        self.state = AnimatorState.RUNNING
        logger.info("Letter animator started (interval=%ss)", self.config.interval)
        done = 0
        try:
            while max_ticks is None or done < max_ticks:
                self.tick()
                done += 1
                if max_ticks is not None and done >= max_ticks:
                    break
                await asyncio.sleep(self.config.interval)
        finally:
            self.state = AnimatorState.STOPPED
            logger.info("Letter animator stopped after %d ticks", done)

    @property
    def is_running(self):
        return self.state is AnimatorState.RUNNING

    def start(self, max_ticks=None):
        """Schedule :meth:`run` on the running event loop and return the task."""
        if self._task is not None and not self._task.done():
            raise RuntimeError("LetterAnimator is already running")
        self._task = asyncio.create_task(self.run(max_ticks=max_ticks))
        return self._task

    async def stop(self):
        """Cancel the loop and wait for it to unwind; safe to call twice."""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    @asynccontextmanager
    async def running(self, max_ticks=None):
        task = self.start(max_ticks=max_ticks)
        try:
            yield task
        finally:
            await self.stop()

    def close(self):
        """Drop the data bound to the drawn letters."""
        self.svg.clear_bindings()

    def to_string(self, pretty=True):
        return self.svg.to_string(pretty=pretty)
