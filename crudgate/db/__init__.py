"""
Connection Management Module Initialization
"""
