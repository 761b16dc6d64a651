"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus), transition guard, overdue rule
- task_store.py: SQLite-backed TaskStore implementation
- overdue_sweeper.py: background job that materializes OVERDUE status
"""
