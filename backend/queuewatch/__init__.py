"""Read-only operational dashboard over an agent task-queue store."""
