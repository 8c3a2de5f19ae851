"""todosync - stateful client for the Todoist incremental sync API."""

__version__ = "0.1.0"
