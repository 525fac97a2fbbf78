"""Domain layer: entities, rules of the plan lifecycle, exceptions and ports."""
