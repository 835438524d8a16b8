"""Environment-derived defaults for httprpc.

Only registration-time defaults live here. Nothing in this module is read
per call.
"""

import os

# Exposed in service metadata when a method declares no timeout. The value is
# advisory; enforcing it belongs to the calling layer.
DEFAULT_METHOD_TIMEOUT_MS = 60000

PRODUCTION_ENVIRONMENTS = ("production", "prod")


def get_env_flag(env_var: str, default: bool = False) -> bool:
    """Get a boolean flag from an environment variable.

    Args:
        env_var: Name of the environment variable
        default: Default value if environment variable is not set

    Returns:
        True if the environment variable is set to "1", "true", or "yes" (case insensitive)
        False if it is set to anything else, default if it is unset or empty
    """
    value = os.environ.get(env_var, "").lower()
    return value in ("1", "true", "yes") if value else default


def get_environment() -> str:
    """Name of the deployment environment (HTTPRPC_ENV, falling back to ENV)."""
    return (os.environ.get("HTTPRPC_ENV") or os.environ.get("ENV") or "development").lower()


def is_production() -> bool:
    return get_environment() in PRODUCTION_ENVIRONMENTS


def default_strict_response_validation() -> bool:
    """Default for services that do not set strict_response_validation.

    Production-like environments fail calls whose response drifts from the
    declared schema; elsewhere drift is only logged. HTTPRPC_STRICT_RESPONSES
    overrides the environment-based choice.
    """
    return get_env_flag("HTTPRPC_STRICT_RESPONSES", default=is_production())
