"""Data layer: wire-shaped models and value coercion."""
