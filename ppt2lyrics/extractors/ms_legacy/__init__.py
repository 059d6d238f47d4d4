"""
Legacy Microsoft Office Extractor Package
=========================================

Extractor for PowerPoint 97-2003 presentations (.ppt), stored as OLE2
compound files and read with olefile.
"""

from ppt2lyrics.extractors.ms_legacy.ppt_extractor import parse_legacy, read_ppt

__all__ = [
    "parse_legacy",
    "read_ppt",
]
