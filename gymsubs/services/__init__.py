"""
Service layer: persistence-backed operations on subscriptions.
"""
