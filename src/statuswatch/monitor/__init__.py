"""Polling, classification and status caching."""
