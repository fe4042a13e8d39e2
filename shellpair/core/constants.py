"""
Project constants definitions
"""

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_TERMINAL_COLS = 80
DEFAULT_TERMINAL_ROWS = 24
DEFAULT_TERM_TYPE = "xterm-256color"

# ============================================================
# Pairing
# ============================================================

# Seconds between terminal-open success and the file channel attempt
DEFAULT_SETTLE_DELAY = 2.0
DEFAULT_PAIRING_WAIT_TIMEOUT = 30.0

TERMINAL_CHANNEL_PREFIX = "term"
FILE_CHANNEL_PREFIX = "sftp"
SESSION_ID_PREFIX = "ssh"

# ============================================================
# File Listing
# ============================================================

HIDDEN_FILE_MARKER = "."
PARENT_DIRECTORY_ENTRY = ".."
DEFAULT_LANGUAGE = "plaintext"
READ_CHUNK_SIZE = 32768

# ============================================================
# Storage
# ============================================================

DEFAULT_PROFILES_DIR = "~/.shellpair/profiles"
DEFAULT_CONFIG_PATH = "~/.shellpair/config.toml"
KEYRING_SERVICE = "shellpair"
ENV_PREFIX = "SHELLPAIR_"
