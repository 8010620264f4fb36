"""Offline helper tools."""
