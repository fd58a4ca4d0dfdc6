"""Exception hierarchy for frigate-lxc."""

from typing import List, Optional


class FrigateLxcError(Exception):
    """Base exception for frigate-lxc."""
    pass


class HostEnvironmentError(FrigateLxcError):
    """Wrong host type, missing privileges or no interactive terminal."""
    pass


class ResourceError(FrigateLxcError):
    """Insufficient host resources or a container ID collision."""
    pass


class ConfigurationError(FrigateLxcError):
    """Invalid configuration file or inconsistent settings."""
    pass


class InputValidationError(FrigateLxcError):
    """Malformed operator input; recovered by asking again."""
    pass


class NetworkFetchError(FrigateLxcError):
    """Release index query failed or returned no candidates."""
    pass


class ExternalToolError(FrigateLxcError):
    """An external command exited non-zero."""

    def __init__(
        self,
        cmd: List[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip()
        message = f"Command '{' '.join(self.cmd)}' exited with status {returncode}"
        if detail:
            message = f"{message}: {detail.splitlines()[-1]}"
        super().__init__(message)


class ProvisionError(FrigateLxcError):
    """A provisioning stage failed."""

    def __init__(self, stage, cause: BaseException, container_created: bool = False):
        self.stage = stage
        self.cause = cause
        self.container_created = container_created
        super().__init__(f"Stage {stage.value} failed: {cause}")


class UpdateError(FrigateLxcError):
    """An update stage failed."""

    def __init__(self, message: str, stage=None, cause: Optional[BaseException] = None):
        self.stage = stage
        self.cause = cause
        if stage is not None:
            message = f"Stage {stage.value} failed: {message}"
        super().__init__(message)
