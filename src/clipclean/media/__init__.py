"""Staging directories and file ownership."""
