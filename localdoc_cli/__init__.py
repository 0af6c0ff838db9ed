"""localdoc: inspect, compare and map .docpack code-knowledge graphs."""

__version__ = "0.3.0"
