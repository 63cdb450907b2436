"""Local todo list: entity model, JSON envelope persistence and a console front end."""

__version__ = "1.0.0"
