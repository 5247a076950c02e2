"""
Halaqa pipelines.

Orchestration functions that span more than one service.
"""
