"""Shared helpers: clock-time arithmetic and seedable sampling"""
