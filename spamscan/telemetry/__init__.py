"""Logging, metrics and HTTP error plumbing."""
