"""Resolved simulation input and the resolver that builds it.

- model.py: immutable input types (ResolvedInput and its parts)
- resolver.py: merges proposal fields with the shared config snapshots
- validation.py: range checks applied before any simulation starts
"""
