"""Base class shared by ClassLedger contracts."""

from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from ..core.events import Event
from ..core.exceptions import IntegrityError, NotAuthorized, UnknownEntryPoint
from ..core.transaction import Call

_MISSING = object()


def entrypoint(abi_name: str, mutating: bool = False, bound: bool = False):
    """Expose a contract method under its ABI name.

    Args:
        abi_name: Name callers use to address the method
        mutating: Method changes state and runs as a transaction
        bound: Read-only method that needs the caller identity
    """
    def decorator(func: Callable) -> Callable:
        func._abi_name = abi_name
        func._mutating = mutating
        func._bound = bound
        return func
    return decorator


class Contract:
    """A ledger instance owning its record tables.

    Entry points change their tables only through :meth:`_write`, which
    keeps an undo record so the host can roll a failed call back without
    copying whole tables.
    """

    def __init__(self, call: Call):
        self.deployer = call.sender
        self.name = self.__class__.__name__
        self.address: Optional[str] = None
        self._pending: List[Tuple[str, Dict[str, Any]]] = []
        self._undo: List[Tuple[Dict, Hashable, Any]] = []

    @classmethod
    def entry_points(cls) -> Dict[str, Callable]:
        """Map ABI names to the unbound methods implementing them."""
        found = {}
        for klass in reversed(cls.__mro__):
            for attr in vars(klass).values():
                abi_name = getattr(attr, "_abi_name", None)
                if abi_name:
                    found[abi_name] = attr
        return found

    def resolve(self, method: str, mutating: bool) -> Callable:
        """Find an entry point by ABI or Python name.

        Raises:
            UnknownEntryPoint: If the method is missing or of the wrong kind
        """
        points = self.entry_points()
        func = points.get(method)
        if func is None:
            func = next((f for f in points.values() if f.__name__ == method), None)
        if func is None or func._mutating != mutating:
            raise UnknownEntryPoint(self.name, method)
        return func.__get__(self, type(self))

    def _emit(self, name: str, **args) -> None:
        self._pending.append((name, args))

    def drain_events(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Return and clear the events emitted by the current call."""
        events, self._pending = self._pending, []
        return events

    def _require(self, call: Call, authority: str) -> None:
        if call.sender != authority:
            raise NotAuthorized(call.sender, authority)

    def _write(self, table: Dict, key: Hashable, value: Any) -> None:
        self._undo.append((table, key, table.get(key, _MISSING)))
        table[key] = value

    def commit(self) -> None:
        """Keep the writes of the current call."""
        self._undo = []

    def rollback(self) -> None:
        """Undo the writes and drop the events of the current call."""
        while self._undo:
            table, key, previous = self._undo.pop()
            if previous is _MISSING:
                del table[key]
            else:
                table[key] = previous
        self._pending = []

    def apply_event(self, event: Event) -> None:
        """Rebuild record tables from an event already in the log.

        Raises:
            IntegrityError: If the event does not fit this contract's state
        """
        raise IntegrityError(f"{self.name} cannot apply {event.name} event {event.id}", event_id=event.id)

    @entrypoint("teacher")
    def teacher(self) -> str:
        """Identity that deployed this contract."""
        return self.deployer
