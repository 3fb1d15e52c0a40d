"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    SocketServer   listening socket + accept loop (main thread)
         │
         │ hands each accepted Connection to
         ▼
    ThreadPool     bounded queue + worker threads
         │
         │ a worker runs the keep-alive loop on
         ▼
    Connection     buffered reads of complete requests, graceful close

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Task, Worker, WorkerState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "Task",
    "Worker",
    "WorkerState",
]
