"""
Command line interface package
"""
