"""Streaming results back to the caller."""
