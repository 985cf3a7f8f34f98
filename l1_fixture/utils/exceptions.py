"""
Exception hierarchy for the L1 fixture builder.

Every failure the builder knows how to describe is a FixtureError carrying
an error code and a details dict, so the CLI can report it uniformly and
map it to a process exit status.
"""

from typing import Any, Dict, Optional


class ErrorCodes:
    """Numeric error codes grouped by concern"""

    # Configuration (1xxx)
    CONFIG_INVALID = 1001
    CONFIG_FILE_NOT_FOUND = 1002

    # Preconditions (2xxx)
    DATA_DIR_EXISTS = 2001

    # Container runtime (3xxx)
    CONTAINER_RUNTIME_UNAVAILABLE = 3001
    CONTAINER_START_FAILED = 3002
    CONTAINER_EXEC_FAILED = 3003
    IMAGE_COMMIT_FAILED = 3004
    CONTAINER_STOP_FAILED = 3005

    # Node (4xxx)
    NODE_STARTUP_TIMEOUT = 4001

    # Build steps (5xxx)
    FUNDING_FAILED = 5001
    DEPLOYMENT_FAILED = 5002
    OWNERSHIP_FIX_FAILED = 5003
    BUILD_INTERRUPTED = 5004


class FixtureError(Exception):
    """Base exception for the fixture builder"""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.code is not None:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ConfigurationError(FixtureError):
    """Invalid or unreadable configuration"""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        field: Optional[str] = None,
        code: int = ErrorCodes.CONFIG_INVALID
    ):
        details = {}
        if config_file:
            details["config_file"] = config_file
        if field:
            details["field"] = field
        super().__init__(message, code=code, details=details)


class PreconditionError(FixtureError):
    """The working directory is not in a state the build can start from"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message,
            code=ErrorCodes.DATA_DIR_EXISTS,
            details={"path": path} if path else None
        )


class ContainerError(FixtureError):
    """Container runtime call failed"""

    def __init__(
        self,
        message: str,
        container_name: Optional[str] = None,
        code: int = ErrorCodes.CONTAINER_START_FAILED
    ):
        details = {"container_name": container_name} if container_name else None
        super().__init__(message, code=code, details=details)


class NodeStartupError(FixtureError):
    """RPC endpoint did not answer before the deadline"""

    def __init__(self, message: str, rpc_url: str, timeout: float):
        super().__init__(
            message,
            code=ErrorCodes.NODE_STARTUP_TIMEOUT,
            details={"rpc_url": rpc_url, "timeout": timeout}
        )


class FundingError(FixtureError):
    """Funding transaction from the coinbase account failed"""

    def __init__(
        self,
        message: str,
        recipient: Optional[str] = None,
        output: Optional[str] = None
    ):
        details = {}
        if recipient:
            details["recipient"] = recipient
        if output:
            details["output"] = output
        super().__init__(message, code=ErrorCodes.FUNDING_FAILED, details=details)


class DeploymentError(FixtureError):
    """External deployer exited unsuccessfully"""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None
    ):
        details = {}
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr
        super().__init__(message, code=ErrorCodes.DEPLOYMENT_FAILED, details=details)


class OwnershipError(FixtureError):
    """Could not hand the data directory back to the invoking user"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message,
            code=ErrorCodes.OWNERSHIP_FIX_FAILED,
            details={"path": path} if path else None
        )


class BuildInterrupted(FixtureError):
    """Termination signal received while the build was running"""

    def __init__(self, signum: int, signame: str):
        self.signum = signum
        super().__init__(
            f"Build interrupted by {signame}",
            code=ErrorCodes.BUILD_INTERRUPTED,
            details={"signal": signame}
        )
