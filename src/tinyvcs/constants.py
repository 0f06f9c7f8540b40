"""Constants used throughout tinyvcs."""

# Directory names
TINYVCS_DIR = ".tinyvcs"
OBJECTS_DIR = "objects"

# File names
METADATA_DB = "metadata.db"

# Hash algorithm
HASH_ALGORITHM = "sha1"
HASH_LENGTH = 40  # SHA-1 produces 40 hex characters
SHORT_HASH_LENGTH = 7

# Root commit
DEFAULT_BRANCH = "master"
ROOT_COMMIT_MESSAGE = "initial commit"
ROOT_COMMIT_TIMESTAMP = "1970-01-01T00:00:00+00:00"

# Log output
LOG_SEPARATOR = "==="
LOG_DATE_SUFFIX = "-0800"  # display only, timestamps are stored in UTC

# Merge
MERGE_MESSAGE_TEMPLATE = "Merged {given} into {current}."
CONFLICT_HEAD_MARKER = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END_MARKER = b">>>>>>>\n"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = EXIT_SUCCESS  # user errors terminate without signalling failure
EXIT_DATA_ERROR = 3
EXIT_INTERRUPTED = 130

# CLI messages
MSG_NO_COMMAND = "Please enter a command."
MSG_UNKNOWN_COMMAND = "No command with that name exists."
MSG_ANCESTOR = "Given branch is an ancestor of the current branch."
MSG_FAST_FORWARD = "Current branch fast-forwarded."
MSG_MERGE_CONFLICT = "Encountered a merge conflict."

# Database schema version
DB_SCHEMA_VERSION = 1
