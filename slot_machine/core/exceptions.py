
class SlotMachineError(Exception):
    """Base class for slot machine errors."""


class InvalidConfigurationError(SlotMachineError, ValueError):
    """Bad multiplier or catalog, rejected before it reaches the game."""


class CatalogInvariantError(SlotMachineError, AssertionError):
    """A draw produced something the catalog does not know about."""

    def __init__(self, message: str, symbol: str = None):
        super().__init__(message)
        self.symbol = symbol
