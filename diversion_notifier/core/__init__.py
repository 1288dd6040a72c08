"""
Core polling, formatting and scheduling logic
"""
