"""Utility modules: history, error handling, transform math, mesh generation"""
