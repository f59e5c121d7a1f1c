"""HTTP routes. Thin wrappers: all behaviour lives in shortlink_app.services."""
