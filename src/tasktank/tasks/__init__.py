"""
Task subsystem.

Components:
- task_models.py: Task, TaskStatus, TaskPriority + validation, patching, record mapping
- task_errors.py: ValidationError / NotFoundError / NotReadyError / PersistenceError
- task_persistence.py: JSON Lines file (atomic rewrite) + save throttle
- task_store.py: in-memory table, CRUD, notifications, claiming, auto-transitions
- task_graph.py: one-hop dependency queries
- task_scheduler.py: priority selection + delayed auto-transition timers
- task_api.py: JSON-safe operations for the tool-serving layer
"""
