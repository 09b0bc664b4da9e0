"""Persistence: serializers and the JSONL document store."""
