"""incrx: incremental computation with automatic dependency tracking."""

from importlib.metadata import version as _version

__version__ = _version("incrx")

from incrx.errors import CycleError, DisposedNodeError, ForeignNodeError, IncrxError
from incrx.node import Function, Node, Variable, default_eq
from incrx.system import System
# textual NOT auto-imported — opt-in only

# Process-wide instance backing the module-level functions below.
default = System()

variable = default.variable
func = default.func
get = default.get
set = default.set  # not in __all__: star-imports must not shadow the builtin
update = default.update
subscribe = default.subscribe
dispose = default.dispose
transaction = default.transaction
action = default.action

__all__ = [
    "System",
    "Variable",
    "Function",
    "Node",
    "default_eq",
    "IncrxError",
    "CycleError",
    "DisposedNodeError",
    "ForeignNodeError",
    "default",
    "variable",
    "func",
    "get",
    "update",
    "subscribe",
    "dispose",
    "transaction",
    "action",
]
