"""
Gather -> summarize -> validate -> commit/discard pipeline.

Modules are imported directly (pipeline.orchestrator, pipeline.gather, ...);
database.repositories depends on pipeline.results.
"""
