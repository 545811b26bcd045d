"""Shared infrastructure clients (object storage, queue transport)."""
