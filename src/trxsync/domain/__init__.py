"""Domain layer: value objects, ports and exceptions."""
