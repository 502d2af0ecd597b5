"""
Command-line interface for the compliance checker.
"""
