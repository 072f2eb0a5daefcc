"""Utilities shared by hecship modules."""
