""" validators to use with `attrs` fields"""

from urllib.parse import urlparse

from hecship.factory_error import InvalidConfigurationError

HEC_URL_SCHEMES = ("http", "https")


def hec_url_validator(_, attribute, value):
    """Validate if a str is an absolute http or https url with a net location."""
    if not isinstance(value, str):
        raise InvalidConfigurationError(f"{attribute.name} is not a str")
    try:
        parsed_url = urlparse(value)
        _ = parsed_url.port
    except ValueError as error:
        raise InvalidConfigurationError(f"{attribute.name} '{value}' is malformed") from error
    if parsed_url.scheme not in HEC_URL_SCHEMES:
        raise InvalidConfigurationError(
            f"{attribute.name} '{value}' has to use one of the schemes {HEC_URL_SCHEMES}"
        )
    if not parsed_url.hostname:
        raise InvalidConfigurationError(f"{attribute.name} '{value}' has no net location")


def non_empty_str_validator(_, attribute, value):
    """Validate if a value is a str with at least one non whitespace character."""
    if not isinstance(value, str):
        raise InvalidConfigurationError(f"{attribute.name} is not a str")
    if not value.strip():
        raise InvalidConfigurationError(f"{attribute.name} must not be empty")
