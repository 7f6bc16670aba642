"""
Audit correlation records

Audit requests and the API calls, errors and log lines recorded against them.
"""
