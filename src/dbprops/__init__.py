"""dbprops: batch reconciliation of frontmatter properties across a document group."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("dbprops")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from dbprops.api import EditingSession, SaveReport, open_session, save
from dbprops.codes import EditCode, PropertyType
from dbprops.config import Config, load_config
from dbprops.errors import DbPropsError, DocumentReadError, DocumentWriteError, SessionClosedError
from dbprops.kernel.aggregate import aggregate
from dbprops.kernel.session import SchemaSession
from dbprops.source import DocumentRef, FolderSelector, TagSelector, VaultSource

__all__ = [
    "__version__",
    "aggregate",
    "open_session",
    "save",
    "EditingSession",
    "SaveReport",
    "SchemaSession",
    "Config",
    "load_config",
    "EditCode",
    "PropertyType",
    "DbPropsError",
    "DocumentReadError",
    "DocumentWriteError",
    "SessionClosedError",
    "DocumentRef",
    "FolderSelector",
    "TagSelector",
    "VaultSource",
]
