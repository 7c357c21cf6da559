"""Plugin Foundry web layer: FastAPI app, settings and SQL storage."""
