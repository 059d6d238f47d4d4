"""
Text normalization for worship lyrics.

Removes punctuation while keeping apostrophes inside words, collapses
whitespace and optionally keeps line breaks. Also detects the song title on
the first slide by comparing its text with the file name.
"""

import logging
import os
import re
from typing import Iterable, Sequence

from ppt2lyrics.extractors.data_types import Presentation, Slide

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 60
TITLE_MIN_SIMILARITY = 0.7

PUNCTUATION_CHARS = frozenset(
    ".,;:?!"  # basic punctuation
    "\"“”"  # quotation marks
    "„‚"  # low quotes
    "«»‹›"  # guillemets
    "()[]{}<>"  # brackets
    "—–-"  # dashes
    "/\\|"  # slashes
    "@#$%^&*_+=~"
)
APOSTROPHE_CHARS = frozenset("'’‘`")

FILENAME_SUFFIX_PATTERN = (
    r"\s*[-_]?\s*(lyrics?|slides?|slideshow|presentation|ppt|pptx|worship|song)\s*$"
)


def extract_song_name_from_filename(filename: str) -> str:
    """
    Clean song name from a file name, normalized for comparison.

    "Amazing Grace Lyrics.pptx" -> "amazing grace"
    """
    return TextNormalizer().song_name_from_filename(filename)


def normalize_for_comparison(text: str) -> str:
    """Lowercase, keep only letters, digits and whitespace, collapse whitespace."""
    kept = "".join(c for c in text if c.isalnum() or c.isspace())
    return " ".join(kept.lower().split())


def calculate_similarity(a: str, b: str) -> float:
    """
    Similarity of two normalized strings, from 0.0 to 1.0.

    Exact matches score 1.0. When one string contains the other the score
    is the ratio of their lengths; otherwise it is the Jaccard index of
    their word sets.
    """
    if not a or not b:
        return 0.0

    if a == b:
        return 1.0

    if a in b or b in a:
        return min(len(a), len(b)) / max(len(a), len(b))

    words_a = set(a.split())
    words_b = set(b.split())
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / len(words_a | words_b)


def is_likely_title(text: str, normalized_filename: str) -> bool:
    """True if the text is close enough to the song name taken from the file name."""
    normalized_text = normalize_for_comparison(text)

    if len(normalized_text) < TITLE_MIN_LENGTH:
        return False

    # Longer text is a lyric line
    if len(normalized_text) > TITLE_MAX_LENGTH:
        return False

    return calculate_similarity(normalized_text, normalized_filename) >= (
        TITLE_MIN_SIMILARITY
    )


class TextNormalizer:
    """Normalizes lyric text extracted from slides."""

    def __init__(self, preserve_line_breaks: bool = True):
        self.preserve_line_breaks = preserve_line_breaks
        self.punctuation = PUNCTUATION_CHARS
        self.apostrophes = APOSTROPHE_CHARS
        self.whitespace_re = re.compile(r"[ \t]+")
        self.filename_suffix_re = re.compile(FILENAME_SUFFIX_PATTERN, re.IGNORECASE)

    def normalize_line(self, text: str) -> str:
        """
        Normalize a piece of text.

        - Removes most punctuation (quotes, brackets, dashes, ...)
        - Keeps apostrophes between two letters (don't, e'er), as "'"
        - Collapses runs of spaces and tabs and trims each line
        """
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        output = []
        last = len(text) - 1
        for i, c in enumerate(text):
            if c in self.punctuation:
                continue
            if c in self.apostrophes:
                prev_is_letter = i > 0 and text[i - 1].isalpha()
                next_is_letter = i < last and text[i + 1].isalpha()
                if prev_is_letter and next_is_letter:
                    output.append("'")
                continue
            output.append(c)

        result = "".join(output)

        if self.preserve_line_breaks:
            return "\n".join(
                self.whitespace_re.sub(" ", line).strip() for line in result.split("\n")
            )
        return self.whitespace_re.sub(" ", result).strip()

    def normalize_to_lines(self, text: str) -> list[str]:
        """Normalize text and split it into its non-empty lines."""
        normalized = self.normalize_line(text)
        return [line.strip() for line in normalized.split("\n") if line.strip()]

    def _normalize_runs(self, texts: Iterable[str]) -> list[str]:
        lines: list[str] = []
        for text in texts:
            lines.extend(self.normalize_to_lines(text))
        return lines

    def normalize_presentation(self, slides: Sequence[Slide]) -> list[str]:
        """All non-empty normalized lines, in slide order then text order."""
        return self._normalize_runs(run.text for slide in slides for run in slide.lines)

    def normalize_lines(self, presentation: Presentation) -> list[str]:
        return self.normalize_presentation(presentation.slides)

    def find_title_index(self, slide: Slide, song_name: str) -> int | None:
        """Index of the first text on the slide that looks like the song title."""
        for idx, run in enumerate(slide.lines):
            if is_likely_title(run.text.strip(), song_name):
                return idx
        return None

    def normalize_presentation_with_title(
        self, slides: Sequence[Slide], filename: str
    ) -> tuple[str | None, list[str]]:
        """
        Normalize all slides, pulling out the song title if the first slide has one.

        The first text of the first slide that matches the song name from
        the file name is returned separately and left out of the lines.

        Returns:
            (title or None, lyric lines)
        """
        if not slides:
            return None, []

        song_name = self.song_name_from_filename(filename)
        first = slides[0]
        title_index = self.find_title_index(first, song_name)

        title = None
        if title_index is not None:
            title = self.normalize_line(first.lines[title_index].text.strip())
            logger.debug(f"Detected title '{title}' for song name '{song_name}'")

        texts = [
            run.text
            for slide_idx, slide in enumerate(slides)
            for run_idx, run in enumerate(slide.lines)
            if not (slide_idx == 0 and run_idx == title_index)
        ]
        return title, self._normalize_runs(texts)

    def normalize_with_title(
        self, presentation: Presentation, filename: str | None = None
    ) -> tuple[str | None, list[str]]:
        return self.normalize_presentation_with_title(
            presentation.slides,
            filename if filename is not None else presentation.filename,
        )

    def song_name_from_filename(self, filename: str) -> str:
        name = os.path.basename(filename)
        if "." in name:
            name = name.rsplit(".", 1)[0]
        return normalize_for_comparison(self.filename_suffix_re.sub("", name))


def normalize_lines(presentation: Presentation) -> list[str]:
    """Normalized lyric lines of a presentation, with the default normalizer."""
    return TextNormalizer().normalize_lines(presentation)


def normalize_with_title(
    presentation: Presentation, filename: str | None = None
) -> tuple[str | None, list[str]]:
    """Title and normalized lyric lines of a presentation, with the default normalizer."""
    return TextNormalizer().normalize_with_title(presentation, filename)
