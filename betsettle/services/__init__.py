"""
Business logic services.

- settlement: game resolution, odds math, grading, reporting and slip import
"""
