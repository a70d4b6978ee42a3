"""
Document storage app.
"""
