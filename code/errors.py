class TWFESimulationError(Exception):
    """Base class for errors raised by the simulation modules."""
    pass


class InvalidParameterError(TWFESimulationError, ValueError):
    """A data-generating parameter failed validation."""
    pass
