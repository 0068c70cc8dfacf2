"""Domain layer: entities and exceptions without infrastructure concerns."""
