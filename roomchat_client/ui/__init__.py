"""
User interface module (PyQt6).
"""
