"""Coordinate geometry package."""
