"""
Task supervisor.

Components:
- task_models.py: data structures (TaskDescriptor, JobOutcome, Snapshot) + parsing
- task_identity.py: stable identity of a task across reloads
- task_runner.py: periodic worker for one task
- reconciler.py: keeps live runners in sync with desired state
- config_watcher.py: change-detecting config loader
- task_scheduler.py: the supervisor loop tying it together
"""
