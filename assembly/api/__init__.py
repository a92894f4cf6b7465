"""HTTP adapter over the engine services."""
