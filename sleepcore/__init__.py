"""
SleepCore adaptive intervention engine

Belief-state tracking, Thompson Sampling intervention choice, sleep window
personalization and just-in-time reminder scheduling for a CBT-I program.
"""

__version__ = "0.1.0"
