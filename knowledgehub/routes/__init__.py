"""HTTP routes for KnowledgeHub."""
