"""Domain services: duplicate resolution, industry models, crowd learning, orchestration."""
