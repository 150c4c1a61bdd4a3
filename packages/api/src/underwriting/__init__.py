# This project was developed with assistance from AI tools.
"""Underwriting decision engine and its HTTP surface."""
