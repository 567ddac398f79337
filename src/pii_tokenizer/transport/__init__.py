"""Inbound HTTP transport."""
