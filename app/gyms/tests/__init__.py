"""
Tests for gyms app.
"""
