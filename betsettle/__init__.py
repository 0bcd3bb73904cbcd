"""
Bet Settlement API.

Grades tracked sports wagers against final scores and reports per-bettor
profit and loss.
"""
__version__ = "1.0.0"
