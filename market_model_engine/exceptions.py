from __future__ import annotations


class MarketModelError(Exception):
    """Base class for every error raised by the accounting engine and its collaborators."""


class ConstructionError(MarketModelError, ValueError):
    """Missing or inconsistent collaborator, grid or buffer sizing."""


class StepOverflowError(MarketModelError, RuntimeError):
    """Product never signalled completion within the allowed number of steps."""


class DiscounterLookupError(MarketModelError, IndexError):
    """Cash flow references a time index with no matching discounter."""


class NumeraireIndexError(MarketModelError, IndexError):
    """Numeraire lookup outside the evolution's numeraire sequence."""


class CashFlowBufferError(MarketModelError, ValueError):
    """Product reported a cash-flow count its buffer cannot hold."""


class NonFiniteValueError(MarketModelError, ValueError):
    """NaN or infinite number met during path valuation."""
