"""HTTP API layer: routers, dependencies and exception handlers."""
