"""Domain layer: entities, ports and business services."""
