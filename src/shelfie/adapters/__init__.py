"""Adapters connecting the import pipeline to files, databases and blob storage."""
