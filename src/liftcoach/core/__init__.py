"""Pure training engine: models, scheduling, auto-regulation, workout tracking and analytics."""
