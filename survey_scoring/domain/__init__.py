"""Domain layer: survey state and scoring result models."""
