"""Controllers of a small shop, scanned by the registry and application tests."""
