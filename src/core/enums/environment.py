"""Application environment types.

Defines the runtime environments for the DebtRescue.AI API.
Used by Settings to determine environment-specific behavior.

Environments:
- DEVELOPMENT: Local development, console logs, emails logged not sent
- TESTING: Automated test execution with isolated database
- CI: Continuous integration environment
- PRODUCTION: Production deployment (secure cookies, hidden error details)
"""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
