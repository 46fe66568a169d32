"""Control and current telemetry for serial bench power supplies."""

__all__ = ["errors", "instrumentation", "telemetry", "io"]
__version__ = "0.1.0"
