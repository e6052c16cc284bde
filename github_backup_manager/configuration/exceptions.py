"""Contains exceptions raised when reconciling application configuration."""


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when no GitHub token could be found."""

    pass


class RequiredConfigurationElementError(Exception):
    """Raised when a required configuration element is missing."""

    def __init__(self, name: str, cli_name: str, env_name: str) -> None:
        """Initializes the exception with the name of the missing element."""
        super().__init__(f"Missing required configuration element: {name} (command line option {cli_name}, environment variable {env_name})")
        self.name = name
        self.cli_name = cli_name
        self.env_name = env_name


class InvalidConfigurationElementError(Exception):
    """Raised when a configuration element has an unusable value."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        """Initializes the exception with the offending element and why it was rejected."""
        super().__init__(f"Invalid configuration element {name}={value!r}: {reason}")
        self.name = name
        self.value = value
        self.reason = reason
