# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions raised while loading and validating helferlein configuration.

Callers that only want to report a bad config can catch ConfigError without
pulling in pydantic or PyYAML.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when a config file parses fine but fails schema validation:
    unknown keys, wrong types, or values outside their allowed range
    (for example a negative eval_freq or an eval_size above 1).
    """
