"""Adapters for the document database and the remote media store."""
