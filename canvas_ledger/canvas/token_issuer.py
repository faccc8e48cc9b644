"""
Token Issuer
============

Mints and tracks the non-fungible ownership records of claimed canvases.

A token shares its id with the canvas it was minted for. The ledger calls
into the issuer while holding that canvas's lock, so per-token state needs no
locking here; only the balance and operator tables, which span tokens, have
their own locks.
"""

import base64
import logging
import threading
from typing import Callable, Dict, List, Optional, Set

from ..models.canvas_models import CanvasRecord
from ..models.token_models import OwnershipRecord, TokenMetadata
from .errors import (
    InsufficientApproval,
    InvalidCaller,
    InvalidOperator,
    InvalidReceiver,
    NotTokenHolder,
    TokenReceiverRejected,
    UnknownToken,
)

logger = logging.getLogger(__name__)

COLLECTION_NAME = "Community Canvas"
COLLECTION_SYMBOL = "CANVAS"
TOKEN_URI_PREFIX = "data:application/json;base64,"

# hook(operator, from_, token_id) -> accept?
ReceiverHook = Callable[[str, str, int], bool]


class TokenIssuer:
    """Ownership records, approvals and balances."""

    def __init__(self):
        self.name = COLLECTION_NAME
        self.symbol = COLLECTION_SYMBOL
        self._records: Dict[int, OwnershipRecord] = {}
        self._approvals: Dict[int, str] = {}
        self._operators: Dict[str, Set[str]] = {}
        self._operator_lock = threading.Lock()
        self._balances: Dict[str, int] = {}
        self._balance_lock = threading.Lock()
        self._receivers: Dict[str, ReceiverHook] = {}

    # ------------------------------------------------------------------
    # Receiver hooks
    # ------------------------------------------------------------------

    def register_receiver(self, identity: str, hook: ReceiverHook) -> None:
        """Call hook whenever a token is minted or transferred to identity."""
        self._receivers[identity] = hook

    def unregister_receiver(self, identity: str) -> None:
        self._receivers.pop(identity, None)

    def _notify_receiver(self, operator: str, sender: str, receiver: str, token_id: int) -> None:
        hook = self._receivers.get(receiver)
        if hook is None:
            return
        if not hook(operator, sender, token_id):
            raise TokenReceiverRejected(token_id, receiver)

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    @staticmethod
    def build_metadata(canvas: CanvasRecord, artwork_ref: str) -> TokenMetadata:
        return TokenMetadata(
            width=canvas.width,
            height=canvas.height,
            start_tick=canvas.created_at_tick,
            final_tick=canvas.last_write_tick,
            complete=True,
            artwork_ref=artwork_ref,
        )

    def mint(self, canvas: CanvasRecord, artwork_ref: str, tick: int) -> OwnershipRecord:
        """
        Mint the record for a claimed canvas to its creator.

        The creator's receiver hook runs after the record is stored. If it
        raises or refuses, the record is removed again and the error
        propagates, leaving the issuer as it was.
        """
        token_id = canvas.id
        record = OwnershipRecord(
            token_id=token_id,
            canvas_id=canvas.id,
            holder=canvas.creator,
            minted_at_tick=tick,
            metadata=self.build_metadata(canvas, artwork_ref),
        )
        self._records[token_id] = record
        self._adjust_balance(record.holder, 1)
        try:
            self._notify_receiver(canvas.creator, "", canvas.creator, token_id)
        except BaseException:
            del self._records[token_id]
            self._adjust_balance(record.holder, -1)
            raise
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def exists(self, token_id: int) -> bool:
        return token_id in self._records

    def record(self, token_id: int) -> OwnershipRecord:
        record = self._records.get(token_id)
        if record is None:
            raise UnknownToken(token_id)
        return record

    def owner_of(self, token_id: int) -> str:
        return self.record(token_id).holder

    def balance_of(self, identity: str) -> int:
        if not identity:
            raise InvalidCaller()
        with self._balance_lock:
            return self._balances.get(identity, 0)

    def get_approved(self, token_id: int) -> str:
        self.record(token_id)
        return self._approvals.get(token_id, "")

    def metadata(self, token_id: int) -> TokenMetadata:
        return self.record(token_id).metadata

    def token_uri(self, token_id: int) -> str:
        document = self.metadata(token_id).to_json().encode("utf-8")
        return TOKEN_URI_PREFIX + base64.b64encode(document).decode("ascii")

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        with self._operator_lock:
            return operator in self._operators.get(owner, ())

    def operators(self) -> Dict[str, List[str]]:
        """Operator approvals by owner, sorted for stable snapshots."""
        with self._operator_lock:
            return {owner: sorted(ops) for owner, ops in sorted(self._operators.items()) if ops}

    # ------------------------------------------------------------------
    # Holder operations
    # ------------------------------------------------------------------

    def _require_authorized(self, record: OwnershipRecord, caller: str) -> None:
        if caller == record.holder or self._approvals.get(record.token_id) == caller:
            return
        if not self.is_approved_for_all(record.holder, caller):
            raise InsufficientApproval(record.token_id, caller)

    def approve(self, token_id: int, approved: str, caller: str) -> None:
        """Let one other identity move or burn the token. Empty string clears."""
        record = self.record(token_id)
        if caller != record.holder and not self.is_approved_for_all(record.holder, caller):
            raise NotTokenHolder(token_id, caller)
        if approved:
            self._approvals[token_id] = approved
        else:
            self._approvals.pop(token_id, None)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> bool:
        """
        Let operator manage every token owner holds, now and later.

        Returns the previous setting so a failed commit can put it back.
        """
        if not owner:
            raise InvalidCaller()
        if not operator or operator == owner:
            raise InvalidOperator(owner, operator)
        with self._operator_lock:
            operators = self._operators.setdefault(owner, set())
            previous = operator in operators
            if approved:
                operators.add(operator)
            else:
                operators.discard(operator)
                if not operators:
                    del self._operators[owner]
        return previous

    def transfer(self, token_id: int, sender: str, receiver: str, caller: str) -> OwnershipRecord:
        record = self.record(token_id)
        self._require_authorized(record, caller)
        if sender != record.holder:
            raise NotTokenHolder(token_id, sender)
        if not receiver:
            raise InvalidReceiver(token_id)

        previous_approval = self._approvals.pop(token_id, None)
        moved = record.with_holder(receiver)
        self._records[token_id] = moved
        self._adjust_balance(sender, -1)
        self._adjust_balance(receiver, 1)
        try:
            self._notify_receiver(caller, sender, receiver, token_id)
        except BaseException:
            self._records[token_id] = record
            self._adjust_balance(receiver, -1)
            self._adjust_balance(sender, 1)
            if previous_approval is not None:
                self._approvals[token_id] = previous_approval
            raise
        return moved

    def burn(self, token_id: int, caller: str) -> OwnershipRecord:
        record = self.record(token_id)
        self._require_authorized(record, caller)
        del self._records[token_id]
        self._approvals.pop(token_id, None)
        self._adjust_balance(record.holder, -1)
        return record

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, record: OwnershipRecord, approved: Optional[str] = None) -> None:
        """Reinstate a persisted record without running hooks."""
        self._records[record.token_id] = record
        self._adjust_balance(record.holder, 1)
        if approved:
            self._approvals[record.token_id] = approved

    def load_operators(self, operators: Dict[str, List[str]]) -> None:
        with self._operator_lock:
            self._operators = {owner: set(ops) for owner, ops in operators.items() if ops}

    def revert(self, token_id: int, record: Optional[OwnershipRecord], approved: str = "") -> None:
        """Put one token back to an earlier state, balances included."""
        current = self._records.pop(token_id, None)
        if current is not None:
            self._adjust_balance(current.holder, -1)
        self._approvals.pop(token_id, None)
        if record is not None:
            self.load(record, approved)

    def _adjust_balance(self, identity: str, delta: int) -> None:
        with self._balance_lock:
            balance = self._balances.get(identity, 0) + delta
            if balance:
                self._balances[identity] = balance
            else:
                self._balances.pop(identity, None)
