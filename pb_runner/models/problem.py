"""Rectangle packing problem instances and their text format.

A case file looks like::

    container height: fixed 22
    rotations allowed: no
    number of rectangles: 2
    12 8
    10 9

Generated instances may also carry a ``bounding box: W H`` line right after
the header. It records the rectangle the pieces were cut from, so its area is
a known optimum. The line is harness metadata and is never sent to a solver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from pb_common.errors import LoadError

HEIGHT_PREFIX = "container height:"
ROTATION_PREFIX = "rotations allowed:"
COUNT_PREFIX = "number of rectangles:"
BOUNDING_BOX_PREFIX = "bounding box:"


def _parse_positive_int(token: str, *, what: str, line_no: int) -> int:
    try:
        value = int(token)
    except ValueError as exc:
        raise LoadError(
            f"Non-numeric {what}: {token!r}",
            context={"line": line_no},
            cause=exc,
        ) from exc
    if value <= 0:
        raise LoadError(f"{what.capitalize()} must be positive, got {value}", context={"line": line_no})
    return value


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle with integral sides."""

    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @classmethod
    def parse(cls, line: str, line_no: int = 0) -> "Rectangle":
        tokens = line.split()
        if len(tokens) != 2:
            raise LoadError(f"Invalid rectangle: {line.strip()!r}", context={"line": line_no})
        width = _parse_positive_int(tokens[0], what="width", line_no=line_no)
        height = _parse_positive_int(tokens[1], what="height", line_no=line_no)
        return cls(width, height)

    def __str__(self) -> str:
        return f"{self.width} {self.height}"


@dataclass(frozen=True)
class Variant:
    """Container variant: free height, or height fixed to ``height``."""

    height: int | None = None

    @property
    def is_fixed(self) -> bool:
        return self.height is not None

    @classmethod
    def parse(cls, value: str, line_no: int = 0) -> "Variant":
        tokens = value.split()
        if tokens == ["free"]:
            return cls()
        if len(tokens) == 2 and tokens[0] == "fixed":
            return cls(_parse_positive_int(tokens[1], what="container height", line_no=line_no))
        raise LoadError(f"Invalid container height: {value.strip()!r}", context={"line": line_no})

    def __str__(self) -> str:
        return "free" if self.height is None else f"fixed {self.height}"


@dataclass(frozen=True)
class Problem:
    """A packing instance: container variant, rotation rule and pieces."""

    variant: Variant
    allow_rotation: bool
    rectangles: tuple[Rectangle, ...]
    bounding_box: Rectangle | None = None

    @property
    def min_area(self) -> int:
        """Sum of piece areas, a lower bound on any container area."""
        return sum(r.area for r in self.rectangles)

    def header(self) -> str:
        return (
            f"{HEIGHT_PREFIX} {self.variant}\n"
            f"{ROTATION_PREFIX} {'yes' if self.allow_rotation else 'no'}\n"
            f"{COUNT_PREFIX} {len(self.rectangles)}"
        )

    def to_text(self) -> str:
        """Canonical solver input (no harness metadata)."""
        lines = [self.header(), *(str(r) for r in self.rectangles)]
        return "\n".join(lines) + "\n"

    def digest(self) -> str:
        """Case file text, including the bounding box when known."""
        lines = [self.header()]
        if self.bounding_box is not None:
            lines.append(f"{BOUNDING_BOX_PREFIX} {self.bounding_box}")
        lines.extend(str(r) for r in self.rectangles)
        return "\n".join(lines) + "\n"

    @classmethod
    def parse(cls, text: str, *, strict: bool = True) -> "Problem":
        """Parse the case file format.

        With ``strict`` the declared rectangle count must match the listed
        rectangles and every piece must fit a fixed-height container.
        """
        lines = _numbered_lines(text)
        variant = Variant.parse(*_expect_prefix(lines, HEIGHT_PREFIX))
        rotation_value, rotation_line = _expect_prefix(lines, ROTATION_PREFIX)
        if rotation_value.strip() not in ("yes", "no"):
            raise LoadError(
                f"Invalid rotation setting: {rotation_value.strip()!r}",
                context={"line": rotation_line},
            )
        allow_rotation = rotation_value.strip() == "yes"
        count_value, count_line = _expect_prefix(lines, COUNT_PREFIX)

        bounding_box: Rectangle | None = None
        rectangles: list[Rectangle] = []
        for line_no, line in lines:
            if line.startswith(BOUNDING_BOX_PREFIX) and not rectangles:
                bounding_box = Rectangle.parse(line[len(BOUNDING_BOX_PREFIX):], line_no)
                continue
            rectangles.append(Rectangle.parse(line, line_no))

        problem = cls(variant, allow_rotation, tuple(rectangles), bounding_box)
        if strict:
            declared = _parse_positive_int(count_value.strip(), what="rectangle count", line_no=count_line)
            if declared != len(rectangles):
                raise LoadError(
                    f"Header declares {declared} rectangles but {len(rectangles)} are listed",
                    context={"declared": declared, "listed": len(rectangles)},
                )
            problem.check_fits()
        return problem

    def check_fits(self) -> None:
        """Raise LoadError when a piece can never fit the fixed container height."""
        if self.variant.height is None:
            return
        limit = self.variant.height
        for index, rect in enumerate(self.rectangles):
            side = min(rect.width, rect.height) if self.allow_rotation else rect.height
            if side > limit:
                raise LoadError(
                    f"Rectangle {rect} does not fit container height {limit}",
                    context={"index": index},
                )


def _numbered_lines(text: str) -> Iterator[tuple[int, str]]:
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line:
            yield line_no, line


def _expect_prefix(lines: Iterator[tuple[int, str]], prefix: str) -> tuple[str, int]:
    try:
        line_no, line = next(lines)
    except StopIteration:
        raise LoadError(f"Unexpected end of file: missing '{prefix}'") from None
    if not line.startswith(prefix):
        raise LoadError(f"Invalid format: expected '{prefix}', got {line!r}", context={"line": line_no})
    return line[len(prefix):], line_no
