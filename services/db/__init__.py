"""
Database Package

Database access layer for the VAC bot.
"""

from .database import Database
from .repository import BaseRepository, RegistryRepository, encode_json, parse_json_list
from .schema import init_schema

__all__ = [
    "BaseRepository",
    "Database",
    "RegistryRepository",
    "encode_json",
    "init_schema",
    "parse_json_list",
]
