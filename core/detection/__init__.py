"""Sensitive-data pattern detection over indexed page text."""
