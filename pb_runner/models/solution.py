"""Solution blocks printed by packing solvers and their evaluation.

A solver may answer with the problem it read followed by its placements::

    container height: fixed 22
    rotations allowed: no
    number of rectangles: 2
    12 8
    10 9
    placement of rectangles
    0 0
    24 3

Each placement line is ``x y`` (bottom-left corner) or, when rotation is
allowed, ``yes|no x y``. Coordinates address unit cells, so a ``w x h``
rectangle at ``(x, y)`` covers ``x .. x+w-1`` and ``y .. y+h-1``.
"""

from __future__ import annotations

from dataclasses import dataclass

from pb_common.errors import LoadError, ParseError
from pb_runner.models.problem import HEIGHT_PREFIX, Problem, Rectangle

PLACEMENT_MARKER = "placement of rectangles"


@dataclass(frozen=True)
class Placement:
    rectangle: Rectangle
    rotated: bool
    x: int
    y: int

    @property
    def width(self) -> int:
        return self.rectangle.height if self.rotated else self.rectangle.width

    @property
    def height(self) -> int:
        return self.rectangle.width if self.rotated else self.rectangle.height

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def top(self) -> int:
        return self.y + self.height - 1

    def overlaps(self, other: "Placement") -> bool:
        return (
            other.y <= self.top
            and other.x <= self.right
            and self.y <= other.top
            and self.x <= other.right
        )


@dataclass(frozen=True)
class Evaluation:
    """Measured quality of a solution; ``violation`` is set when infeasible."""

    container: Rectangle | None
    min_area: int
    violation: str | None = None

    @property
    def feasible(self) -> bool:
        return self.violation is None

    @property
    def area(self) -> int | None:
        return self.container.area if self.container else None

    @property
    def empty_area(self) -> int | None:
        return None if self.container is None else self.container.area - self.min_area

    @property
    def filling_rate(self) -> float | None:
        if self.container is None or not self.container.area:
            return None
        return self.min_area / self.container.area

    def describe(self) -> str:
        if self.container is None:
            return f"infeasible: {self.violation}"
        text = (
            f"bounding box: {self.container}, area: {self.container.area}, "
            f"unused area: {self.empty_area}, filling rate: {self.filling_rate:.2f}"
        )
        if self.violation:
            text += f" (infeasible: {self.violation})"
        return text


@dataclass(frozen=True)
class Solution:
    problem: Problem
    placements: tuple[Placement, ...]

    def find_overlap(self) -> tuple[Placement, Placement] | None:
        """Return the first overlapping pair; quadratic in the placement count."""
        for index, first in enumerate(self.placements):
            for second in self.placements[index + 1:]:
                if first.overlaps(second):
                    return first, second
        return None

    def evaluate(self) -> Evaluation:
        min_area = self.problem.min_area
        if not self.placements:
            return Evaluation(container=None, min_area=min_area, violation="no placements")

        if not self.problem.allow_rotation and any(p.rotated for p in self.placements):
            return Evaluation(
                container=None,
                min_area=min_area,
                violation="rotations were not allowed, but solution contains rotated rectangles",
            )

        overlap = self.find_overlap()
        if overlap is not None:
            first, second = overlap
            return Evaluation(
                container=None,
                min_area=min_area,
                violation=f"overlap between {first.rectangle} at ({first.x}, {first.y}) "
                f"and {second.rectangle} at ({second.x}, {second.y})",
            )

        width = max(p.right for p in self.placements) + 1
        height = max(p.top for p in self.placements) + 1
        fixed = self.problem.variant.height
        if fixed is not None:
            if height > fixed:
                return Evaluation(
                    container=Rectangle(width, height),
                    min_area=min_area,
                    violation=f"placements exceed problem bounds: top {height}, bound {fixed}",
                )
            height = fixed
        return Evaluation(container=Rectangle(width, height), min_area=min_area)

    @classmethod
    def find(cls, output: str) -> "Solution | None":
        """Locate and parse the last solution block in solver output.

        Returns None when the output holds no placement marker. Raises
        ParseError when a block is present but malformed.
        """
        lines = output.splitlines()
        marker_index = None
        for index, line in enumerate(lines):
            if line.strip() == PLACEMENT_MARKER:
                marker_index = index
        if marker_index is None:
            return None

        header_index = None
        for index in range(marker_index - 1, -1, -1):
            if lines[index].strip().startswith(HEIGHT_PREFIX):
                header_index = index
                break
        if header_index is None:
            raise ParseError("Solution block has no problem header")

        try:
            problem = Problem.parse("\n".join(lines[header_index:marker_index]), strict=False)
        except LoadError as exc:
            raise ParseError(f"Invalid problem header in solution: {exc}", cause=exc) from exc

        tokens_per_line = [line.split() for line in lines[marker_index + 1:] if line.strip()]
        count = len(problem.rectangles)
        if len(tokens_per_line) < count:
            raise ParseError(
                "Solution contains a different number of placements than rectangles",
                context={"rectangles": count, "placements": len(tokens_per_line)},
            )
        placements = tuple(
            _parse_placement(tokens, rect)
            for tokens, rect in zip(tokens_per_line[:count], problem.rectangles)
        )
        return cls(problem, placements)


def _parse_placement(tokens: list[str], rect: Rectangle) -> Placement:
    rotated = False
    coords = tokens
    # A rotation column is read even when rotation is forbidden so evaluation can flag it.
    if len(tokens) == 3:
        if tokens[0] not in ("yes", "no"):
            raise ParseError(f"Unexpected rotation token: {tokens[0]!r}")
        rotated = tokens[0] == "yes"
        coords = tokens[1:]
    if len(coords) != 2:
        raise ParseError(f"Invalid placement: {' '.join(tokens)!r}")
    try:
        x, y = int(coords[0]), int(coords[1])
    except ValueError as exc:
        raise ParseError(f"Non-numeric placement: {' '.join(tokens)!r}", cause=exc) from exc
    if x < 0 or y < 0:
        raise ParseError(f"Negative placement coordinate: {' '.join(tokens)!r}")
    return Placement(rect, rotated, x, y)
