# vehiclesim/errors

"""
vehiclesim.errors

Central exception hierarchy for vehiclesim.

Rationale:
  - Modules raise specific, meaningful errors.
  - Callers can catch VehicleSimError (broad) or specific subclasses (narrow).
"""


class VehicleSimError(RuntimeError):
    """Base class for all vehiclesim runtime errors."""


# ---- Route errors ------------------------------

class RouteError(VehicleSimError):
    """Errors related to building or loading a route."""

class InvalidRouteError(RouteError):
    """Route has fewer than two waypoints (or inconsistent timestamps)."""

class RouteFormatError(RouteError):
    """Route records could not be parsed into waypoints."""

class InvalidGpxError(RouteFormatError):
    """GPX file could not be parsed or did not contain usable points."""


# ---- Simulation errors -------------------------

class SimulationError(VehicleSimError):
    """Errors raised by the traversal engine."""

class InvalidSpeedError(SimulationError):
    """Speed multiplier was negative; the previous value is kept."""

class ReentrantAdvanceError(SimulationError):
    """advance() was called while another advance() was still in flight."""


# ---- Configuration errors ----------------------

class ConfigError(VehicleSimError):
    """Configuration file or override could not be interpreted."""
