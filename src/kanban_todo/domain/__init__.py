"""Domain layer: entities, rules, DTOs, exceptions and ports."""
