"""
ACL service package.

This package decides whether a role may exercise a privilege on a
resource. It provides:

- app.acl: The engine (resource tree, rule management, access queries).
- app.roles: Role registry and inheritance DAG.
- app.rules: Rule model and tree-shaped rule store.
- app.loader: Bulk loading from a declarative permissions description.

Guidelines:
- The engine is in-memory and single threaded; callers that share an
  instance across threads must serialise access themselves.
- Anything not explicitly allowed is denied.
"""
