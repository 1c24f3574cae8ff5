"""Configuration, collaborators and kiosk use cases."""
