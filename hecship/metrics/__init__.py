"""Prometheus metrics of hecship components."""
