"""
Rules package.

Defines the rule model and the tree-shaped store the ACL engine reads
and writes. Rules attach to a (resource, role, privilege) triple where
every dimension may be a wildcard.

Modules of interest:
- models: Rule types, operations, rules and rule buckets.
- store: Bucket lookup, rule writes/removals and purge helpers.
"""
