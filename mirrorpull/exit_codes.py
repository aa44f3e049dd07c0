"""
Standard exit codes and error types for mirrorpull commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # Pipeline API call failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
DISCOVERY_ERROR = 70     # Repository root could not be read
PARTIAL_SUCCESS = 71     # Some fetches succeeded, some failed
PAYLOAD_ERROR = 72       # Webhook payload not recognized
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'JSONDecodeError': PAYLOAD_ERROR,
    'ConfigError': CONFIG_ERROR,
    'DiscoveryError': DISCOVERY_ERROR,
    'MalformedPayload': PAYLOAD_ERROR,
    'TriggerError': API_ERROR,
    'NotificationError': GENERAL_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class MirrorPullError(Exception):
    """Base class for every error raised by mirrorpull."""


class CommandError(MirrorPullError):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class DiscoveryError(CommandError):
    """Raised when the repository root exists but cannot be enumerated."""
    def __init__(self, message: str, root: Optional[str] = None):
        super().__init__(message, DISCOVERY_ERROR)
        self.root = root


class MalformedPayload(CommandError):
    """Raised when a webhook payload matches neither provider shape."""
    def __init__(self, message: str = "Unrecognized webhook payload"):
        super().__init__(message, PAYLOAD_ERROR)


class TriggerError(CommandError):
    """Raised when the pipeline API call fails."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, API_ERROR)
        self.status_code = status_code


class FetchError(MirrorPullError):
    """
    A failed fetch of one remote in one repository.

    Never escapes the fetch orchestrator; it is recorded in the report.
    """
    def __init__(self, repo_path: str, remote: str, message: str):
        super().__init__(message)
        self.repo_path = repo_path
        self.remote = remote
        self.message = message

    def format_entry(self) -> str:
        """Render as a report failure entry."""
        return (
            f"<b>Failed to fetch remote {self.remote} in {self.repo_path}</b>\n"
            f"<pre>{self.message}</pre>"
        )


class PartialSuccessError(CommandError):
    """Raised when some fetches succeed and some fail."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed


class NotificationError(CommandError):
    """Raised when a report mail cannot be delivered."""
    def __init__(self, message: str):
        super().__init__(message, GENERAL_ERROR)
