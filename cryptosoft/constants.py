# Key stream
KEY_SIZE = 8  # 64-bit key, serialized little-endian
DEFAULT_KEY = 0x0123456789ABCDEF
MAX_KEY = (1 << 64) - 1

# Streaming
CHUNK_SIZE = 4096

# Temporary files created beside the target during an in-place swap
TEMP_PREFIX = ".cryptosoft-"
TEMP_SUFFIX = ".tmp"

# Operations (encrypt and decrypt dispatch identically; XOR is self-inverse)
OP_ENCRYPT = "encrypt"
OP_DECRYPT = "decrypt"
OPERATIONS = (OP_ENCRYPT, OP_DECRYPT)

# Directory names never descended into (exact, case-sensitive match)
EXCLUDED_DIRS = frozenset({
    "bin",
    "obj",
    "node_modules",
    ".git",
    ".vs",
    "dist",
    "build",
    "target",
    "Debug",
    "Release",
    "packages",
})

# Text/source extensions eligible in directory mode (compared lowercase)
ALLOWED_EXTENSIONS = frozenset({
    ".cs", ".js", ".py", ".java", ".cpp", ".h", ".hpp", ".c", ".txt",
    ".json", ".xml", ".html", ".css", ".md", ".sql", ".ts", ".tsx",
    ".jsx", ".vue", ".php", ".rb", ".go", ".rs", ".swift", ".kt",
})

# Configuration file looked up in the working directory
CONFIG_FILENAME = "appsettings.json"
CONFIG_SECTION = "EncryptionSettings"

# Process exit codes (non-negative values are elapsed milliseconds)
EXIT_ARGUMENT_COUNT = -1
EXIT_INVALID_OPERATION = -2
EXIT_PATH_NOT_FOUND = -3
EXIT_IO_FAILURE = -4
