"""Constants and static configuration for the MSSQL MCP server."""

# Application constants
SERVER_NAME = "mssql-mcp"
SERVER_VERSION = "1.1.0"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Default connection string
DEFAULT_CONNECTION_ENV = "MSSQL_CONNECTION_STRING"

# Windows credentials, in order of precedence
WINDOWS_USERNAME_ENV = "WINDOWS_USERNAME"
WINDOWS_PASSWORD_ENV = "WINDOWS_PASSWORD"
WINDOWS_DOMAIN_ENV = "WINDOWS_DOMAIN"
WINDOWS_CREDENTIALS_JSON_ENV = "windows_credentials"
LEGACY_WINDOWS_CREDENTIALS_JSON_ENV = "MSSQL_WINDOWS_CREDENTIALS"
LEGACY_USERNAME_ENV = "MSSQL_USERNAME"
LEGACY_PASSWORD_ENV = "MSSQL_PASSWORD"
LEGACY_DOMAIN_ENV = "MSSQL_DOMAIN"

# Named connections, in order of precedence
NAMED_CONNECTION_PREFIX = "CONNECTION_"
CONNECTIONS_JSON_ENV = "connections"
LEGACY_CONNECTIONS_JSON_ENV = "MSSQL_CONNECTIONS"

# Connection defaults
DEFAULT_SERVER = "localhost"
LOGIN_TIMEOUT = 60  # seconds, handshake only; queries have no timeout

# Query constants
DEFAULT_ROW_LIMIT = 20
QUERY_PREVIEW_LENGTH = 100
TEST_CONNECTION_QUERY = (
    "SELECT @@VERSION AS version, @@SERVERNAME AS server_name, DB_NAME() AS database_name"
)
