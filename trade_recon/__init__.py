"""Heuristic UI inventory and traffic capture for trading web pages."""
