"""
Task Planner backend package.

Recurrence-aware task visibility and per-date completion tracking exposed
through a FastAPI application (planner_api.main:app).
"""
