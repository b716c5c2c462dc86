"""
Configuration classes for each environment.
"""
