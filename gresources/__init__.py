"""GResources: hierarchical text resources over a flat SQLite table."""
