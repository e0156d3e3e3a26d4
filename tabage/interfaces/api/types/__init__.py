"""API types - Pydantic request/response models, thin adapters around DTOs."""
