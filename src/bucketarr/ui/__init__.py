"""
Terminal presentation: shared console, transfer progress, run summary.
"""
