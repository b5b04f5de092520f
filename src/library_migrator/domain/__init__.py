"""Domain layer: migration semantics independent of the concrete stores."""
