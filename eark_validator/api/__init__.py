"""HTTP surface of the validator."""
