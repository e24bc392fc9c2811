"""StatusWatch HTTP API."""
