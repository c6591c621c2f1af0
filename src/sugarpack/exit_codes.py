"""Exit codes for sugarpack CLI commands.

Early successful returns (missing version, release already built) use SUCCESS.
"""

# Success
SUCCESS = 0

# Errors
GENERAL_ERROR = 1
INVALID_ARGS = 2
MANIFEST_INCOMPLETE = 3
TEMPLATE_ERROR = 4
ILLEGAL_STATE = 5
ARCHIVE_ERROR = 6
