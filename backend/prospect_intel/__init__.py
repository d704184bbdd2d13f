"""Prospect ingestion and multi-pass intelligence pipeline."""
