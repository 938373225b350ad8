"""
Backend Scripts Module

Available scripts:
    - seed_data.py: Creates a demo supplier catalogue and prints demo tokens

Usage:
    python -m scripts.seed_data
"""
