"""HTTP API for bsvfx."""
