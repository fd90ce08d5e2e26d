"""
Postprocessing module for Pore Extractor.

Contains:
- FITS export of extracted patches
"""

from postprocessing.export import PatchWriter

__all__ = ["PatchWriter"]
