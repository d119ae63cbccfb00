"""HTTP API for the CRM dashboard."""
