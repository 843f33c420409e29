"""Constants used throughout tinyvcs."""

# Directory names
TINYVCS_DIR = ".tinyvcs"
OBJECTS_DIR = "objects"

# File names
INDEX_FILE = "index"
HEAD_FILE = "HEAD"

# Entries whose name starts with this marker are never versioned
HIDDEN_PREFIX = "."

# Hash algorithm
HASH_ALGORITHM = "sha1"
HASH_LENGTH = 40  # SHA-1 produces 40 hex characters

# Object kinds recorded in tree and index lines
KIND_BLOB = "blob"
KIND_TREE = "tree"
OBJECT_KINDS = (KIND_BLOB, KIND_TREE)

# Commit text
COMMIT_DATE_FORMAT = "%m/%d/%Y %H:%M:%S"
COMMIT_FIELDS = ("tree", "parent", "author", "date", "message")

# Implicit root commit performed by repository bootstrap
BOOTSTRAP_AUTHOR = "tinyvcs"
BOOTSTRAP_MESSAGE = "initial commit"

# Environment variable holding extra protected checkout patterns (comma separated)
PROTECT_ENV_VAR = "TINYVCS_PROTECT"

# Exit codes
EXIT_USER_ERROR = 1
