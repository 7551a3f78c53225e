"""E-ARK archive validator bridging the test bed protocol to the backend validator."""

__version__ = "1.0.0"
