"""Program run report engine.

Accepts declarative report requests, generates each report as an
asynchronous job, and tracks job state through marker files so that status
survives process restarts.
"""
