"""
Volleyball league backend: round-robin fixtures, result validation and tables.
"""
