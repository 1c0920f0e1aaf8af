class TreeMetricsError(Exception):
    """Base class for analysis errors."""


class MalformedTreeError(TreeMetricsError):
    """The syntax tree lacks structure the analyses rely on."""


class TokenExtractionError(TreeMetricsError):
    """The CPD token stream of a file could not be produced."""


class UnsupportedLanguageError(TreeMetricsError, ValueError):
    pass


class ConfigError(TreeMetricsError, ValueError):
    pass
