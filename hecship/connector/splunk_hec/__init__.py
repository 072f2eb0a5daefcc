"""Output connector for the Splunk HTTP Event Collector."""
