"""
Modern Microsoft Office Extractor Package
==========================================

Extractor for PowerPoint 2007+ presentations (.pptx). The format uses the
Office Open XML (OOXML) standard, which stores documents as ZIP archives
containing XML parts:

    presentation.pptx/
    ├── [Content_Types].xml    # MIME types for parts
    ├── docProps/
    │   └── core.xml           # Title, author, dates
    └── ppt/
        ├── _rels/presentation.xml.rels   # Slide relationships
        ├── slides/slideN.xml             # Slide content
        └── notesSlides/notesSlideN.xml   # Speaker notes

The parts are read with the standard library (zipfile and
xml.etree.ElementTree); no third-party OOXML library is needed.
"""

from ppt2lyrics.extractors.ms_modern.pptx_extractor import parse_modern, read_pptx

__all__ = [
    "parse_modern",
    "read_pptx",
]
