"""
Job dispatch tracking

Execution records for background jobs, correlated with the audit requests
that dispatched and ran them.
"""
