"""Creator-facing services: upload handling and publishing workflows."""
