"""Session controller, shared domain types and events."""
