"""Generate packing instances with a known optimum.

A container is cut into pieces by repeated guillotine cuts. The pieces tile
the container exactly, so its area is the optimal objective and is recorded
as the ``bounding box`` line of the case file.
"""

from __future__ import annotations

import logging
import math
import random

from pb_common.errors import ConfigurationError
from pb_runner.models.problem import Problem, Rectangle, Variant

logger = logging.getLogger(__name__)

AVG_RECTANGLE_AREA = 50


def container_with_area(area: int, rng: random.Random) -> Rectangle:
    """Pick a container of exactly ``area`` cells, favouring squarish shapes."""
    divisors = [d for d in range(1, math.isqrt(area) + 1) if area % d == 0]
    n = len(divisors)
    index = int(min(max(rng.gauss(n / 2, n / 7), 0), n - 1))
    side = divisors[index]
    if rng.random() < 0.5:
        return Rectangle(side, area // side)
    return Rectangle(area // side, side)


def split(rect: Rectangle, rng: random.Random) -> tuple[Rectangle, Rectangle]:
    """Cut ``rect`` in two; the cut direction is weighted by side length."""
    w, h = rect.width, rect.height
    if w == 1 and h == 1:
        raise ValueError(f"{rect} cannot be split")
    if h > 1 and (w == 1 or rng.randrange(w + h) >= w):
        y = rng.randrange(1, h)
        return Rectangle(w, y), Rectangle(w, h - y)
    x = rng.randrange(1, w)
    return Rectangle(x, h), Rectangle(w - x, h)


def generate_problem(
    count: int,
    container: Rectangle | None = None,
    fixed: bool | None = None,
    rotation: bool | None = None,
    seed: int | None = None,
) -> Problem:
    """Build an instance of ``count`` rectangles.

    Options left as ``None`` are drawn at random. With ``seed`` the output is
    deterministic.
    """
    if count < 1:
        raise ConfigurationError("Rectangle count must be at least 1", context={"count": count})
    rng = random.Random(seed)
    box = container or container_with_area(count * AVG_RECTANGLE_AREA, rng)
    if count > box.area:
        raise ConfigurationError(
            f"Container {box} cannot be split into {count} rectangles",
            context={"count": count, "container": str(box)},
        )
    if fixed is None:
        fixed = rng.random() < 0.5
    if rotation is None:
        rotation = rng.random() < 0.5

    pieces = [box]
    while len(pieces) < count:
        index = rng.randrange(len(pieces))
        piece = pieces[index]
        if piece.area == 1:
            continue
        pieces[index] = pieces[-1]
        pieces.pop()
        pieces.extend(split(piece, rng))

    if rotation:
        pieces = [Rectangle(p.height, p.width) if rng.random() < 0.5 else p for p in pieces]
    rng.shuffle(pieces)

    logger.debug("Generated %d rectangles in %s (seed=%s)", count, box, seed)
    return Problem(
        variant=Variant(box.height if fixed else None),
        allow_rotation=rotation,
        rectangles=tuple(pieces),
        bounding_box=box,
    )
