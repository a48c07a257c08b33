"""HTTP blueprints for the task manager API."""
