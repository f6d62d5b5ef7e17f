"""Configuration: credential resolution and static supplier settings."""
