"""Exit codes for the release CLI.

Every fatal release failure maps to one of these codes. The numeric values
are part of the command-line contract and should remain stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad input, invalid target, unknown extension)
    - 2: Environment error (missing gh, dirty worktree, not a TAO instance)
    - 3: Build error (bundling or npm build failed)
    - 4: Network error (push, pull request or GitHub release failed)
    - 5: I/O error (manifest cannot be read or written)
    - 6: Aborted (operator declined a confirmation)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    ABORTED = 6

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
