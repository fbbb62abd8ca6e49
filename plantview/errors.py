"""Exception types raised by the schematic engine."""


class PlantViewError(Exception):
    """Base class for all plantview errors."""


class NotFound(PlantViewError, KeyError):
    """An element id could not be resolved against the network model.

    The topology is closed, so ids only ever come from the model itself.
    Seeing this at runtime means a caller passed an id it made up.
    """

    def __init__(self, kind: str, element_id: str) -> None:
        super().__init__(f"Unknown {kind} id {element_id!r}")
        self.kind = kind
        self.element_id = element_id

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the whole message
        return self.args[0]


class DegenerateGeometry(PlantViewError, ValueError):
    """A flow path description could not be turned into a polyline."""
