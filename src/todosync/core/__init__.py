"""Core types shared across todosync components."""
