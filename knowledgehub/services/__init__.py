"""Service layer for KnowledgeHub."""
