"""
Core configuration, storage and shared domain types
"""
