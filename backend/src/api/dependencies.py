"""FastAPI dependencies for injection."""
from fastapi.requests import HTTPConnection

from api.connections import ConnectionManager
from api.dispatcher import CommandDispatcher
from services.revision_engine import RevisionEngine


def get_engine(connection: HTTPConnection) -> RevisionEngine:
    """Get the revision engine created at application startup."""
    return connection.app.state.engine


def get_connections(connection: HTTPConnection) -> ConnectionManager:
    """Get the connection manager created at application startup."""
    return connection.app.state.connections


def get_dispatcher(connection: HTTPConnection) -> CommandDispatcher:
    """Get the command dispatcher created at application startup."""
    return connection.app.state.dispatcher
