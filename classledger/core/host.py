"""Deterministic execution host for ClassLedger contracts."""

import hashlib
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union
import logging

from .clock import utc_now
from .events import Event, EventLog
from .exceptions import ClassLedgerError, SignatureError, ValidationError
from .transaction import Call, Receipt, Transaction
from ..backends.base import StorageBackend
from ..config import HostConfig
from ..contracts.base import Contract
from ..crypto.identity import normalize_address

logger = logging.getLogger(__name__)

ContractRef = Union[Contract, str]


class Host:
    """Runs contracts one mutation at a time and records their events.

    Every mutating call is applied under a single write lock. The entry
    point runs, and either its events are appended to the log and its writes
    committed, or its writes are rolled back and nothing is recorded.
    Reads never take the lock.

    A host opened over a log that already holds events continues its block
    numbers, and each contract deployed on it is rebuilt from the events
    recorded under its name.
    """

    def __init__(
        self,
        config: Optional[HostConfig] = None,
        backend: Optional[StorageBackend] = None,
        clock: Optional[Callable[[], datetime]] = None,
        **kwargs,
    ):
        if config is not None and kwargs:
            raise ValidationError(
                f"Pass either a HostConfig or config keywords, not both: {sorted(kwargs)}",
                field="config",
                value=sorted(kwargs),
            )
        self.config = config or HostConfig(**kwargs)
        self.event_log = EventLog(
            backend=backend or self.config.create_backend(),
            hash_algorithm=self.config.hash_algorithm,
        )
        self._clock = clock or utc_now

        self._write_lock = threading.RLock()
        self._contracts: Dict[str, Contract] = {}
        self._nonces: Dict[str, int] = {}
        self._block_number = 0
        self._deploy_count = 0

        latest = self.event_log.backend.get_latest_event()
        if latest is not None:
            self._block_number = latest.block_number
            logger.info(f"Resuming event log at block {self._block_number}")

    @property
    def block_number(self) -> int:
        """Number of the last block, one per accepted transaction."""
        return self._block_number

    def _next_call(self, sender: str, tx_id: Optional[str] = None) -> Call:
        return Call(
            sender=sender,
            tx_id=tx_id or uuid.uuid4().hex,
            block_number=self._block_number + 1,
            timestamp=self._clock(),
        )

    def deploy(self, contract_cls: Type[Contract], sender: str, name: Optional[str] = None) -> Contract:
        """Construct a contract with ``sender`` as its deployer.

        Deployment is an operator action on the host, so it takes a bare
        sender even when the host requires signed transactions. Events
        already logged under ``name`` are applied to the new contract.

        Args:
            contract_cls: Contract class to instantiate
            sender: Deploying identity, which becomes the authority
            name: Registry name, defaults to the class name

        Returns:
            The deployed contract

        Raises:
            IntegrityError: If the logged events do not fit the new contract
        """
        sender = normalize_address(sender, field="sender")
        name = name or contract_cls.__name__

        with self._write_lock:
            if name in self._contracts:
                raise ValidationError(f"Contract {name} is already deployed", field="name", value=name)

            call = self._next_call(sender)
            contract = contract_cls(call)
            contract.name = name

            replayed = 0
            for event in self.event_log.get_events(contract=name):
                contract.apply_event(event)
                replayed += 1

            self._deploy_count += 1
            seed = f"{sender}:{self._deploy_count}".encode('utf-8')
            contract.address = "0x" + hashlib.sha3_256(seed).digest()[-20:].hex()

            self._contracts[name] = contract
            self._contracts[contract.address] = contract
            self._block_number = call.block_number

        logger.info(f"Deployed {name} at {contract.address} by {sender} ({replayed} events applied)")
        return contract

    def contract(self, ref: ContractRef) -> Contract:
        """Look up a deployed contract by instance, name or address."""
        if isinstance(ref, Contract):
            return ref
        contract = self._contracts.get(ref) or self._contracts.get(str(ref).lower())
        if contract is None:
            raise ValidationError(f"No contract deployed as {ref!r}", field="contract", value=ref)
        return contract

    def transact(self, sender: str, contract: ContractRef, method: str, *args) -> Receipt:
        """Run a mutating entry point as ``sender``.

        For trusted in-process callers that already know who the sender is.
        External callers should use :meth:`submit` with a signed transaction.

        Raises:
            SignatureError: If the host requires signed transactions
        """
        if self.config.require_signatures:
            raise SignatureError("Unsigned transactions are disabled on this host", sender=sender)
        return self._execute(normalize_address(sender, field="sender"), contract, method, args)

    def submit(self, tx: Transaction) -> Receipt:
        """Verify and run a signed transaction.

        The sender is the address of the signing key. Nonces start at zero
        and must increase by one per accepted transaction; a rejected
        transaction does not consume its nonce.

        Raises:
            SignatureError: If the signature or nonce is invalid
        """
        sender = tx.verify()

        with self._write_lock:
            expected = self._nonces.get(sender, 0)
            if tx.nonce != expected:
                raise SignatureError(
                    f"Invalid nonce {tx.nonce} for {sender}, expected {expected}",
                    sender=sender,
                    nonce=tx.nonce,
                )
            receipt = self._execute(sender, tx.contract, tx.method, tx.args, tx_id=tx.tx_hash)
            self._nonces[sender] = expected + 1

        return receipt

    def nonce(self, address: str) -> int:
        """Next nonce expected from ``address``."""
        return self._nonces.get(normalize_address(address), 0)

    def _execute(
        self,
        sender: str,
        contract: ContractRef,
        method: str,
        args: Sequence[Any],
        tx_id: Optional[str] = None,
    ) -> Receipt:
        with self._write_lock:
            target = self.contract(contract)
            entry_point = target.resolve(method, mutating=True)
            call = self._next_call(sender, tx_id)

            try:
                entry_point(call, *args)
                emitted = target.drain_events()
                events = [
                    Event(
                        tx_id=call.tx_id,
                        log_index=index,
                        name=event_name,
                        contract=target.name,
                        args=event_args,
                        block_number=call.block_number,
                        timestamp=call.timestamp,
                    )
                    for index, (event_name, event_args) in enumerate(emitted)
                ]
                sealed = self.event_log.append(events)
            except ClassLedgerError as e:
                target.rollback()
                logger.warning(f"Rejected {target.name}.{method} from {sender}: {e.reason}: {e.message}")
                raise
            except Exception:
                target.rollback()
                logger.exception(f"Failed {target.name}.{method} from {sender}")
                raise

            target.commit()
            self._block_number = call.block_number

        logger.info(
            f"Accepted {target.name}.{method} from {sender} "
            f"in block {call.block_number} ({len(sealed)} events)"
        )
        return Receipt(
            tx_id=call.tx_id,
            block_number=call.block_number,
            sender=sender,
            contract=target.name,
            method=method,
            events=sealed,
        )

    def call(self, contract: ContractRef, method: str, *args, sender: Optional[str] = None) -> Any:
        """Run a read-only entry point against the committed state.

        Args:
            contract: Contract instance, name or address
            method: ABI or Python name of a read-only entry point
            sender: Caller identity, required by caller-bound reads

        Raises:
            UnknownEntryPoint: If method is not a read-only entry point
            ValidationError: If a caller-bound read has no sender
        """
        target = self.contract(contract)
        entry_point = target.resolve(method, mutating=False)

        if getattr(entry_point, "_bound", False):
            if sender is None:
                raise ValidationError(f"{method} needs a sender", field="sender", value=None)
            call = Call(
                sender=normalize_address(sender, field="sender"),
                tx_id="",
                block_number=self._block_number,
                timestamp=self._clock(),
            )
            return entry_point(call, *args)

        return entry_point(*args)

    def events(
        self,
        name: Optional[str] = None,
        contract: Optional[ContractRef] = None,
        since: Optional[datetime] = None,
    ) -> List[Event]:
        """Events recorded so far, oldest first."""
        contract_name = self.contract(contract).name if contract is not None else None
        return list(self.event_log.get_events(name=name, contract=contract_name, start_time=since))

    def close(self) -> None:
        self.event_log.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
