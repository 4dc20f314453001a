"""MCP server exposing Microsoft SQL Server databases to tool-calling clients."""

from .constants import SERVER_VERSION

__version__ = SERVER_VERSION
