"""Request shaping and dispatch."""
