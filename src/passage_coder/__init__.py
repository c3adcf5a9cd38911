"""Passage Coder - segmentation and suggestion engine for qualitative coding."""

__version__ = "0.1.0"
