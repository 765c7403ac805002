"""
Test suite for todo-integrator.
"""
