"""Output generation for plans (PDF, text)."""

from prodplanner.output.debug_generator import DebugGenerator
from prodplanner.output.pdf_generator import PDFGenerator

__all__ = [
    "DebugGenerator",
    "PDFGenerator",
]
