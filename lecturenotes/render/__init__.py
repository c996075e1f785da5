"""
lecturenotes.render - Notes document rendering.

Pipeline Stage 5: Convert markdown notes into a styled, paginated PDF.
"""

from __future__ import annotations

from lecturenotes.render.pdf import PDFRenderer

__all__ = ["PDFRenderer"]
