"""Graph normalization, cluster mapping, metrics and link lists."""
