"""Orchestration over the context-assembly components."""
