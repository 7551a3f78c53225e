"""Core configuration, logging, error handling and HTTP utilities."""
