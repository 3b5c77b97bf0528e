"""Domain-level contracts shared by the stores and services."""
