"""Character-addressable text index package."""
