"""Connectors of hecship."""
