"""Daily task curation and task ordering service."""
