"""ragstream — document ingestion and retrieval-augmented streaming chat."""

__version__ = "0.1.0"
