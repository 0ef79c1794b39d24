"""Feature blueprints of the key tracking service."""
