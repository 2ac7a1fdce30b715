"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_FOUND = 3
    INVALID_REQUEST = 4
    UNEXPECTED_ERROR = 5


class FailurePolicy(Enum):
    """How per-unit lookup failures affect a total.

    Args:
        Enum (string): Policy names accepted in config and on the CLI.
    """

    BEST_EFFORT = "best_effort"
    STRICT = "strict"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    MANIFEST_FILE = "package.json"
    VENDORED_DIR = "node_modules"
    ARTIFACT_SUFFIX = ".zip"
    PACKAGE_ID_PATTERN = r"^[A-Za-z0-9\-]+$"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "PKGCOST_LOG_LEVEL"
    ENV_CONFIG = "PKGCOST_CONFIG"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    STREAM_CHUNK_SIZE = 64 * 1024

    BYTES_PER_MB = 1024 * 1024
    SIZE_PRECISION = 3
    MIN_UNIT_MB = 0.001
    MAX_MANIFEST_BYTES = 1024 * 1024

    MAX_DEPTH = 32
    MAX_UNITS = 2000
    FAILURE_POLICY = FailurePolicy.BEST_EFFORT.value

    STORE_DIR = "./artifacts"
    METADATA_INDEX = "./packages.yml"

    SERVER_HOST = "127.0.0.1"
    SERVER_PORT = 8080
