"""Oracle state machine: claims, prevotes, weighted votes and rounds over an in-memory key-value store."""

__version__ = "0.1.0"