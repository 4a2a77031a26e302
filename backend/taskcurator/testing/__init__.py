"""Helpers for building test data and stand-in AI providers."""
