"""
Slide boundary reconstruction for legacy PowerPoint text.

The record stream has no reliable "this text belongs to slide N" marker, so
text entries are grouped heuristically. Each heuristic is a grouping
strategy; strategies are tried in order and the first one whose grouping is
conclusive wins. A grouping is inconclusive when everything ends up in a
single group of more than one entry.
"""

import logging
from typing import Protocol, Sequence

from ppt2lyrics.extractors.data_types import Slide, TextRun
from ppt2lyrics.extractors.ms_legacy.records import TextEntry

logger = logging.getLogger(__name__)


class SlideGroupingStrategy(Protocol):
    name: str

    def group(self, entries: Sequence[TextEntry]) -> list[list[TextEntry]]: ...


class PersistMarkerGrouping:
    """Start a new slide whenever the SlidePersistAtom count changes."""

    name = "persist-marker"

    def group(self, entries: Sequence[TextEntry]) -> list[list[TextEntry]]:
        groups: list[list[TextEntry]] = []
        current: list[TextEntry] = []
        last_hint = 0

        for entry in entries:
            if entry.slide_hint != last_hint and current:
                groups.append(current)
                current = []
            current.append(entry)
            last_hint = entry.slide_hint

        if current:
            groups.append(current)
        return groups


class TitleSplitGrouping:
    """Start a new slide at every title text after the first entry."""

    name = "title-split"

    def group(self, entries: Sequence[TextEntry]) -> list[list[TextEntry]]:
        groups: list[list[TextEntry]] = []
        current: list[TextEntry] = []

        for entry in entries:
            if entry.purpose.is_title and current:
                groups.append(current)
                current = []
            current.append(entry)

        if current:
            groups.append(current)
        return groups


DEFAULT_STRATEGIES: tuple[SlideGroupingStrategy, ...] = (
    PersistMarkerGrouping(),
    TitleSplitGrouping(),
)


def _is_conclusive(groups: list[list[TextEntry]]) -> bool:
    return not (len(groups) == 1 and len(groups[0]) > 1)


def group_entries(
    entries: Sequence[TextEntry],
    strategies: Sequence[SlideGroupingStrategy] = DEFAULT_STRATEGIES,
) -> list[list[TextEntry]]:
    """Group entries with the first conclusive strategy (or the last one tried)."""
    groups: list[list[TextEntry]] = []
    for strategy in strategies:
        groups = strategy.group(entries)
        if _is_conclusive(groups):
            logger.debug(f"Grouped text into {len(groups)} slides by {strategy.name}")
            break
        logger.debug(f"Grouping by {strategy.name} was inconclusive")
    return groups


def build_slide(number: int, group: Sequence[TextEntry]) -> Slide:
    """Build a slide with title texts first, then the rest, each in stream order."""
    ordered = sorted(group, key=lambda e: e.offset)
    titles = [TextRun(text=e.text) for e in ordered if e.purpose.is_title]
    others = [TextRun(text=e.text) for e in ordered if not e.purpose.is_title]
    return Slide(number=number, lines=tuple(titles + others))


def assemble_slides(
    entries: Sequence[TextEntry],
    strategies: Sequence[SlideGroupingStrategy] = DEFAULT_STRATEGIES,
) -> list[Slide]:
    if not entries:
        return []

    slides: list[Slide] = []
    for group in group_entries(entries, strategies):
        if not group:
            continue
        slides.append(build_slide(len(slides) + 1, group))
    return slides
