"""Event logging for lint runs."""
