"""
ProPresenter text output.

ProPresenter imports plain text where slides are separated by a blank line.
Lyric lines are grouped into slides of a fixed number of lines (default 2).

    Amazing grace how sweet the sound
    That saved a wretch like me

    I once was lost but now am found
    Was blind but now I see
"""

from dataclasses import dataclass
from typing import Sequence

DEFAULT_LINES_PER_SLIDE = 2


@dataclass(frozen=True)
class FormattedSlide:
    """Lines of one output slide."""

    lines: tuple[str, ...]

    def __str__(self) -> str:
        return "\n".join(self.lines)


def split_into_slides(
    lines: Sequence[str], lines_per_slide: int = DEFAULT_LINES_PER_SLIDE
) -> list[FormattedSlide]:
    """Group lines into slides of at most lines_per_slide lines."""
    size = max(lines_per_slide, 1)
    return [
        FormattedSlide(lines=tuple(lines[i : i + size]))
        for i in range(0, len(lines), size)
    ]


def count_output_slides(
    lines: Sequence[str],
    lines_per_slide: int = DEFAULT_LINES_PER_SLIDE,
    title: str | None = None,
) -> int:
    """Number of slides ProPresenter will create, counting the title slide."""
    title_slides = 1 if title else 0
    return title_slides + len(split_into_slides(lines, lines_per_slide))


class ProPresenterFormatter:
    """Formats normalized lyric lines as ProPresenter import text."""

    def __init__(self, lines_per_slide: int = DEFAULT_LINES_PER_SLIDE):
        self.lines_per_slide = max(lines_per_slide, 1)

    def format(self, lines: Sequence[str]) -> str:
        """Lines grouped into slides, slides separated by a blank line."""
        slides = split_into_slides(lines, self.lines_per_slide)
        return "\n\n".join(str(slide) for slide in slides)

    def format_with_newline(self, lines: Sequence[str]) -> str:
        formatted = self.format(lines)
        return f"{formatted}\n" if formatted else formatted

    def format_with_title(self, lines: Sequence[str], title: str | None) -> str:
        """The title as its own slide, followed by the lyric slides."""
        if not title:
            return self.format_with_newline(lines)
        lyrics = self.format(lines)
        if not lyrics:
            return f"{title}\n"
        return f"{title}\n\n{lyrics}\n"
