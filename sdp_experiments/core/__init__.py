"""Core experiment components: data, strategies, engine and analysis."""
