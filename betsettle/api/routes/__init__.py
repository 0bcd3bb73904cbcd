"""
API routes.

- settlement: game resolution/search, graded bets, summaries, manual grades, slip import
"""
