"""PDF engines available to the generator, keyed by name."""

from .chromium_engine import ChromiumEngine
from .weasyprint_engine import WeasyPrintEngine

ENGINES = {
    ChromiumEngine.name: ChromiumEngine,
    WeasyPrintEngine.name: WeasyPrintEngine,
}

__all__ = ['ChromiumEngine', 'WeasyPrintEngine', 'ENGINES']
