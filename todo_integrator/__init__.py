"""
todo-integrator - keep Obsidian daily-note tasks and Microsoft To Do in sync.
"""

__version__ = "0.3.0"
