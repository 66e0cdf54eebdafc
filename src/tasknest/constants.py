STATE_DIR_NAME = ".tasknest"
BOARDS_FILE = "boards.yaml"
BOARDS_LOCK_FILE = "boards.lock"
CONFIG_FILE = "config.yaml"

BOARDS_SCHEMA_VERSION = 1
WINDOWS_LOCK_BYTES = 4096

DEFAULT_BACKGROUND_COLOR = "bg-blue-500"
DEFAULT_COLUMN_TITLES = ("To Do", "In Progress", "Done")
DEFAULT_LOG_LEVEL = "INFO"
