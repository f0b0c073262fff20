"""HTTP layer: routers, dependencies, exception handlers and schemas."""
