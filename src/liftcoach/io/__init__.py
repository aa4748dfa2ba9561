"""Persistence, caching and the AI insight collaborator."""
