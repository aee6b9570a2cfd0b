"""
Command-line interface for CreatorLens
"""
