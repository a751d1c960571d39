"""Format parsers and shared building blocks for the document tree."""
