"""Parsers for git's textual output formats."""
