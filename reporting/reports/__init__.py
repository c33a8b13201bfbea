"""
Report Module

One module per report family. Every report takes an AsyncSession as its
first argument and reads typed filters or a resolved window.
"""
