"""Configuration, logging, performance monitoring and visualization."""
