"""Protocol route modules."""
