"""
Tests for core app.
"""
