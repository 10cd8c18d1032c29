"""
Shared utilities for the ACL engine.

This package aggregates common building blocks consumed by the engine:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with structlog
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- test_helpers: Test data factories

Any cross-cutting logic should live here to avoid import cycles. Do not
import from service_acl into shared/.
"""
