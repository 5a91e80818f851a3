"""Reference image collaborator — an in-memory store and its handlers.

``common`` holds the handlers both namespaces share; ``compat`` and
``native`` hold the namespace-specific variants.
"""
