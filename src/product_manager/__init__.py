"""Product manager: a live product catalogue backed by Cosmos DB or SQLite."""

__version__ = "1.0.0"
