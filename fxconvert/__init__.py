"""Live-rate currency converter service."""
