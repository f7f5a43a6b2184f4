"""Formatters turning raw tool output into check results."""
