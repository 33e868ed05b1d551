"""HTTP service, SQL persistence and maintenance scripts for athlete mention detection."""
