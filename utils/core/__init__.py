"""Core utilities: logging, paths and the update error taxonomy"""
