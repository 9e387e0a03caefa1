"""Upload validation, staging and request orchestration."""
