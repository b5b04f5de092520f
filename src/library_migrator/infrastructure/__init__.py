"""Infrastructure layer: SQL generation helpers shared by the IO layer."""
