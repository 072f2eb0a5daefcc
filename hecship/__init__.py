"""hecship forwards log messages to a Splunk HTTP Event Collector."""
