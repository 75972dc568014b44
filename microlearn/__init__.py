"""
Microlearn - Challenge Session Engine

Core of a gamified micro-learning app: sequences short practice
challenges, meters per-type hearts, scores answers with combo and speed
bonuses, and keeps day-scoped statistics and completion records.
"""

__version__ = "1.0.0"
__author__ = "Microlearn Contributors"
