"""Server pipeline — ASGI translation, dispatch, error rendering, and serving."""
