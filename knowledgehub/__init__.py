"""KnowledgeHub: a personal publishing site on FastAPI and SQLite."""
