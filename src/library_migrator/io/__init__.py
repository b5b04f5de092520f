"""IO layer: concrete source, target and run-metadata stores."""
