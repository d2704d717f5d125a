"""Run the random-letters animation for a few seconds, writing each frame to disk."""

import asyncio
import logging

from d3_svg_views import AnimatorConfig, LetterAnimator


def main():
    logging.basicConfig(level=logging.DEBUG)

    def write_frame(svg, result):
        svg.save("letters.svg")

    animator = LetterAnimator(AnimatorConfig(interval=1.0), on_frame=write_frame)

    async def show():
        async with animator.running():
            await asyncio.sleep(5)

    asyncio.run(show())
    animator.close()


if __name__ == "__main__":
    main()
