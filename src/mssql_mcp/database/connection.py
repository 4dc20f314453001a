"""Connection string parsing into driver-ready configuration."""

from dataclasses import dataclass, field
from typing import Optional, Union

from ..config import WindowsCredentials
from ..constants import DEFAULT_SERVER

SERVER_KEYS = ("server", "data source")
DATABASE_KEYS = ("database", "initial catalog")
USER_KEYS = ("user id", "uid")
PASSWORD_KEYS = ("password", "pwd")
INTEGRATED_SECURITY_VALUES = ("true", "sspi")


@dataclass(frozen=True)
class ServerTarget:
    """Where to connect.

    ``server`` is kept exactly as written, including any ``\\instance``
    or ``,port`` suffix; the driver interprets it.
    """

    server: str = DEFAULT_SERVER
    database: Optional[str] = None


@dataclass(frozen=True)
class DefaultAuth:
    """SQL Server login (user name and password)."""

    user_name: Optional[str] = None
    password: Optional[str] = None

    mode = "default"


@dataclass(frozen=True)
class NtlmAuth:
    """Windows/NTLM login.

    With neither ``user_name`` nor ``password`` set the driver falls back
    to the identity of the current process.
    """

    user_name: Optional[str] = None
    password: Optional[str] = None
    domain: Optional[str] = None

    mode = "ntlm"


AuthMethod = Union[DefaultAuth, NtlmAuth]


@dataclass(frozen=True)
class TlsOptions:
    encrypt: bool = True
    trust_server_certificate: bool = True


@dataclass(frozen=True)
class ResolvedConnectionConfig:
    """Driver configuration derived from one connection string."""

    target: ServerTarget = field(default_factory=ServerTarget)
    auth: AuthMethod = field(default_factory=DefaultAuth)
    tls: TlsOptions = field(default_factory=TlsOptions)

    @property
    def auth_mode(self) -> str:
        return self.auth.mode

    @property
    def server(self) -> str:
        return self.target.server

    @property
    def database(self) -> Optional[str]:
        return self.target.database


def parse_connection_string(
    connection_string: str,
    credentials: Optional[WindowsCredentials] = None,
) -> ResolvedConnectionConfig:
    """Parse a ``key=value;`` connection string into driver configuration.

    Keys are matched case-insensitively and applied in order; unknown keys
    are ignored. ``Integrated Security=true|SSPI`` switches to NTLM and
    injects whichever Windows credentials are configured. When the
    credentials hold neither a user name nor a password, both fields are
    left unset so the driver uses the current process identity.

    Args:
        connection_string: Raw connection string, e.g.
            ``Server=db01\\SQL2019;Database=crm;User Id=app;Password=secret``
        credentials: Process-wide Windows credentials

    Returns:
        ResolvedConnectionConfig built fresh for this string
    """
    credentials = credentials or WindowsCredentials()
    server = DEFAULT_SERVER
    database: Optional[str] = None
    encrypt = True
    trust_server_certificate = True
    ntlm = False
    # Absent keys mean "not set", which the driver treats differently from ""
    options: dict[str, str] = {}

    for part in connection_string.split(";"):
        key, _, value = part.partition("=")
        key = key.strip()
        value = value.strip()
        if not key or not value:
            continue

        lower_key = key.lower()
        if lower_key in SERVER_KEYS:
            server = value
        elif lower_key in DATABASE_KEYS:
            database = value
        elif lower_key in USER_KEYS:
            options["user_name"] = value
        elif lower_key in PASSWORD_KEYS:
            options["password"] = value
        elif lower_key == "integrated security":
            if value.lower() in INTEGRATED_SECURITY_VALUES:
                ntlm = True
                if credentials.username:
                    options["user_name"] = credentials.username
                if credentials.password:
                    options["password"] = credentials.password
                if credentials.domain:
                    options["domain"] = credentials.domain
                if not credentials.username and not credentials.password:
                    options.pop("user_name", None)
                    options.pop("password", None)
        elif lower_key == "encrypt":
            encrypt = value.lower() == "true"
        elif lower_key == "trustservercertificate":
            trust_server_certificate = value.lower() == "true"

    if ntlm:
        auth: AuthMethod = NtlmAuth(**options)
    else:
        options.pop("domain", None)
        auth = DefaultAuth(**options)

    return ResolvedConnectionConfig(
        target=ServerTarget(server=server, database=database),
        auth=auth,
        tls=TlsOptions(encrypt=encrypt, trust_server_certificate=trust_server_certificate),
    )
