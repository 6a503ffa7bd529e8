"""Core infrastructure: settings, logging, exceptions."""
