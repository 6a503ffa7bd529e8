"""Adaptive survey question-selection and answer-scoring engine."""

__version__ = "0.1.0"
