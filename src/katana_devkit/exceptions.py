"""Custom exception classes for katana-devkit."""


class DevkitError(Exception):
    """Base exception for katana-devkit errors."""

    pass


class MissingInputError(DevkitError, FileNotFoundError):
    """Raised when a required input directory or file does not exist."""

    pass


class ConfigError(DevkitError, ValueError):
    """Raised when katana-devkit.json cannot be parsed or is malformed."""

    pass


class ToolchainError(DevkitError, RuntimeError):
    """Raised when an external toolchain binary (e.g. solc) is unavailable."""

    pass


class RpcError(DevkitError, RuntimeError):
    """Raised when a JSON-RPC request fails or returns an error."""

    pass
