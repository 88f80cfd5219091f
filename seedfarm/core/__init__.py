"""Infrastructure layer: configuration, logging, exceptions, store and database access."""
