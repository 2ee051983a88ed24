"""Troubleshoot: declarative diagnostics for clusters and hosts.

Specs (support bundles, preflights, redactors, collectors, analyzers) are loaded from
YAML documents, collectors gather evidence into a path-keyed artifact store, and
analyzers turn that evidence into pass/warn/fail verdicts.
"""
