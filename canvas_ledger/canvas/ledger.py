"""
Canvas Ledger
=============

Storage and rules for collaborative canvases.

- Registry: allocates canvas ids from a monotonic counter and keeps records.
- Lifecycle: Open -> Complete -> Claimed, with completion derived lazily from
  ticks at the top of every operation that touches a canvas.
- Pixels: sparse writes, accepted only while a canvas is open.
- Claim: the creator turns a completed canvas into an ownership record, once.

Every operation on a canvas runs under that canvas's reentrant lock, so calls
against one canvas are serialized while different canvases never contend.
While a claim is minting, the canvas is marked in progress and any nested
call that reaches it fails with ReentrantCall.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Set, Type

from ..models.canvas_models import (
    DEFAULT_COLOR,
    MAX_COLOR,
    CanvasPixels,
    CanvasRecord,
    CanvasStatus,
    CanvasView,
)
from ..models.event_models import (
    Approval,
    ApprovalForAll,
    CanvasClaimed,
    CanvasCreated,
    LedgerEvent,
    PixelColored,
    Transfer,
)
from ..models.token_models import OwnershipRecord, TokenMetadata
from .errors import (
    CanvasAlreadyClaimed,
    CanvasFinished,
    CanvasNotFinished,
    CoordinatesOutOfBounds,
    InvalidArtworkReference,
    InvalidCaller,
    InvalidColor,
    InvalidDimensions,
    InvalidDuration,
    LookupFailed,
    NotCanvasOwner,
    ReentrantCall,
    UnknownCanvas,
    UnknownToken,
)
from .event_log import EventLog
from .lifecycle import apply_completion
from .pixel_store import PixelStore
from .snapshot_store import CanvasSnapshot, SnapshotStore
from .ticks import ManualTicks, TickSource
from .token_issuer import ReceiverHook, TokenIssuer

logger = logging.getLogger(__name__)


class CanvasLedger:
    """Canvas registry, pixel store, lifecycle engine and token issuer."""

    def __init__(
        self,
        ticks: Optional[TickSource] = None,
        store: Optional[SnapshotStore] = None,
        default_color: int = DEFAULT_COLOR,
        event_retention: Optional[int] = None,
    ):
        self.ticks = ticks or ManualTicks()
        self.store = store
        self.pixels = PixelStore(default_color=default_color)
        self.tokens = TokenIssuer()
        self.events = EventLog(retention=event_retention)

        self._canvases: Dict[int, CanvasRecord] = {}
        self._locks: Dict[int, threading.RLock] = {}
        self._claiming: Set[int] = set()
        self._registry_lock = threading.Lock()
        self._next_id = 1

        self._tick_lock = threading.Lock()
        self._highest_tick = 0

        # Serializes operator approvals, which belong to no single canvas
        self._operators_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> int:
        """Current tick, never lower than a tick this ledger already observed."""
        tick = self.ticks.current()
        with self._tick_lock:
            if tick < self._highest_tick:
                logger.warning(
                    f"[LEDGER] Tick source went backwards ({tick} < {self._highest_tick}), "
                    f"holding at {self._highest_tick}"
                )
                return self._highest_tick
            self._highest_tick = tick
            return tick

    @contextmanager
    def _locked(
        self, canvas_id: int, missing: Type[LookupFailed] = UnknownCanvas
    ) -> Iterator[CanvasRecord]:
        """Hold the canvas lock and reject calls nested inside a claim."""
        lock = self._locks.get(canvas_id)
        if lock is None:
            raise missing(canvas_id)
        with lock:
            canvas = self._canvases.get(canvas_id)
            if canvas is None:
                # creation was rolled back while we waited
                raise missing(canvas_id)
            if canvas_id in self._claiming:
                raise ReentrantCall(canvas_id)
            yield canvas

    def _touch(self, canvas: CanvasRecord, tick: int) -> None:
        """Apply lazy completion; persist the transition if it fires."""
        previous = canvas.status
        if apply_completion(canvas, tick):
            logger.info(f"[LEDGER] Canvas {canvas.id} complete at tick {tick}")

            def rollback():
                canvas.status = previous

            self._commit(canvas, [], rollback)

    def _persist(self, canvas: CanvasRecord) -> None:
        if self.store is None:
            return
        token = None
        approved = ""
        if self.tokens.exists(canvas.id):
            token = self.tokens.record(canvas.id)
            approved = self.tokens.get_approved(canvas.id)
        self.store.save_canvas(CanvasSnapshot(
            canvas=canvas.model_copy(),
            pixels=self.pixels.writes(canvas.id),
            token=token,
            approved=approved,
        ))

    def _commit(
        self, canvas: CanvasRecord, events: List[LedgerEvent], rollback: Callable[[], None]
    ) -> None:
        """
        Persist the canvas, then publish its observations. Caller holds the lock.

        The caller has already applied its change in memory. If the snapshot
        cannot be written, rollback undoes that change and the error
        propagates with nothing published.
        """
        try:
            self._persist(canvas)
        except BaseException:
            logger.error(f"[LEDGER] Snapshot of canvas {canvas.id} failed, change rolled back")
            rollback()
            raise
        self.events.publish(events)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @property
    def canvas_count(self) -> int:
        return len(self._canvases)

    @property
    def current_tick(self) -> int:
        return self._now()

    def create_canvas(self, width: int, height: int, max_duration_ticks: int, creator: str) -> int:
        """Register a new open canvas and return its id."""
        if width <= 0 or height <= 0:
            raise InvalidDimensions(width, height)
        if max_duration_ticks <= 0:
            raise InvalidDuration(max_duration_ticks)
        if not creator:
            raise InvalidCaller()

        tick = self._now()
        lock = threading.RLock()
        with lock:
            with self._registry_lock:
                canvas_id = self._next_id
                if self.store is not None:
                    self.store.save_counter(canvas_id + 1)
                # A canvas whose snapshot fails still uses up its id
                self._next_id += 1
                canvas = CanvasRecord(
                    id=canvas_id,
                    width=width,
                    height=height,
                    created_at_tick=tick,
                    max_duration_ticks=max_duration_ticks,
                    status=CanvasStatus.OPEN,
                    last_write_tick=tick,
                    creator=creator,
                    artwork_ref="",
                )
                self._canvases[canvas_id] = canvas
                self.pixels.add_canvas(canvas_id)
                self._locks[canvas_id] = lock

            def rollback():
                with self._registry_lock:
                    del self._canvases[canvas_id]
                    del self._locks[canvas_id]
                    self.pixels.drop_canvas(canvas_id)

            logger.info(
                f"[LEDGER] Canvas {canvas_id} created by {creator}: "
                f"{width}x{height}, open for {max_duration_ticks} ticks from {tick}"
            )
            self._commit(canvas, [CanvasCreated(
                tick=tick,
                canvas_id=canvas_id,
                creator=creator,
                width=width,
                height=height,
                start_tick=tick,
                max_duration_ticks=max_duration_ticks,
            )], rollback)
        return canvas_id

    def get_canvas(self, canvas_id: int) -> CanvasView:
        with self._locked(canvas_id) as canvas:
            self._touch(canvas, self._now())
            return canvas.to_view()

    def list_canvases(self) -> List[CanvasView]:
        with self._registry_lock:
            canvas_ids = sorted(self._canvases)
        return [self.get_canvas(canvas_id) for canvas_id in canvas_ids]

    # ------------------------------------------------------------------
    # Pixels
    # ------------------------------------------------------------------

    def set_pixel(self, canvas_id: int, x: int, y: int, color: int, caller: str) -> None:
        """Color one pixel of an open canvas. Any caller may write."""
        with self._locked(canvas_id) as canvas:
            tick = self._now()
            self._touch(canvas, tick)
            if canvas.status != CanvasStatus.OPEN:
                raise CanvasFinished(canvas_id)
            if not canvas.contains(x, y):
                raise CoordinatesOutOfBounds(canvas_id, x, y, canvas.width, canvas.height)
            if not 0 <= color <= MAX_COLOR:
                raise InvalidColor(color)
            if not caller:
                raise InvalidCaller()

            previous_color = self.pixels.set(canvas_id, x, y, color)
            previous_tick = canvas.last_write_tick
            canvas.last_write_tick = tick

            def rollback():
                if previous_color is None:
                    self.pixels.unset(canvas_id, x, y)
                else:
                    self.pixels.set(canvas_id, x, y, previous_color)
                canvas.last_write_tick = previous_tick

            logger.debug(f"[LEDGER] Canvas {canvas_id} ({x}, {y}) = {color} by {caller}")
            self._commit(canvas, [PixelColored(
                tick=tick, canvas_id=canvas_id, editor=caller, x=x, y=y, color=color,
            )], rollback)

    def get_pixel(self, canvas_id: int, x: int, y: int) -> int:
        """Stored color, or the default color for pixels never written."""
        with self._locked(canvas_id) as canvas:
            self._touch(canvas, self._now())
            if not canvas.contains(x, y):
                raise CoordinatesOutOfBounds(canvas_id, x, y, canvas.width, canvas.height)
            return self.pixels.get(canvas_id, x, y)

    def get_pixels(self, canvas_id: int) -> CanvasPixels:
        """Explicit writes of a canvas, for sparse renderers."""
        with self._locked(canvas_id) as canvas:
            self._touch(canvas, self._now())
            return CanvasPixels(
                canvas_id=canvas_id,
                width=canvas.width,
                height=canvas.height,
                default_color=self.pixels.default_color,
                pixels=self.pixels.writes(canvas_id),
            )

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim(self, canvas_id: int, artwork_ref: str, caller: str) -> OwnershipRecord:
        """
        Mint the ownership record of a completed canvas to its creator.

        Checks run in order: existence, creator, completion, prior claim,
        artwork reference. Minting may call the creator's receiver hook; if
        the hook or the snapshot fails, the canvas stays Complete with no
        token and nothing is emitted.
        """
        with self._locked(canvas_id) as canvas:
            if caller != canvas.creator:
                raise NotCanvasOwner(canvas_id, canvas.creator)
            tick = self._now()
            self._touch(canvas, tick)
            if canvas.status == CanvasStatus.OPEN:
                raise CanvasNotFinished(canvas_id)
            if canvas.status == CanvasStatus.CLAIMED:
                raise CanvasAlreadyClaimed(canvas_id)
            if not artwork_ref or not artwork_ref.strip():
                raise InvalidArtworkReference(canvas_id)

            self._claiming.add(canvas_id)
            try:
                record = self.tokens.mint(canvas, artwork_ref, tick)
            finally:
                self._claiming.discard(canvas_id)

            previous_status = canvas.status
            canvas.status = CanvasStatus.CLAIMED
            canvas.artwork_ref = artwork_ref

            def rollback():
                self.tokens.revert(canvas_id, None)
                canvas.status = previous_status
                canvas.artwork_ref = ""

            logger.info(f"[LEDGER] Canvas {canvas_id} claimed by {caller} ({artwork_ref})")
            self._commit(canvas, [
                Transfer(tick=tick, canvas_id=canvas_id, sender="", receiver=caller, token_id=canvas_id),
                CanvasClaimed(tick=tick, canvas_id=canvas_id, creator=caller),
            ], rollback)
            return record

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def register_receiver(self, identity: str, hook: ReceiverHook) -> None:
        self.tokens.register_receiver(identity, hook)

    def unregister_receiver(self, identity: str) -> None:
        self.tokens.unregister_receiver(identity)

    def token_metadata(self, token_id: int) -> TokenMetadata:
        with self._locked(token_id, missing=UnknownToken):
            return self.tokens.metadata(token_id)

    def token_metadata_json(self, token_id: int) -> str:
        return self.token_metadata(token_id).to_json()

    def token_uri(self, token_id: int) -> str:
        with self._locked(token_id, missing=UnknownToken):
            return self.tokens.token_uri(token_id)

    def owner_of(self, token_id: int) -> str:
        with self._locked(token_id, missing=UnknownToken):
            return self.tokens.owner_of(token_id)

    def balance_of(self, identity: str) -> int:
        return self.tokens.balance_of(identity)

    def get_approved(self, token_id: int) -> str:
        with self._locked(token_id, missing=UnknownToken):
            return self.tokens.get_approved(token_id)

    def _token_rollback(self, token_id: int) -> Callable[[], None]:
        """Capture a token's current state; the returned callable restores it."""
        record = self.tokens.record(token_id)
        approved = self.tokens.get_approved(token_id)
        return lambda: self.tokens.revert(token_id, record, approved)

    def approve(self, token_id: int, approved: str, caller: str) -> None:
        with self._locked(token_id, missing=UnknownToken) as canvas:
            tick = self._now()
            rollback = self._token_rollback(token_id)
            owner = self.tokens.owner_of(token_id)
            self.tokens.approve(token_id, approved, caller)
            self._commit(canvas, [Approval(
                tick=tick, canvas_id=token_id, owner=owner, approved=approved, token_id=token_id,
            )], rollback)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.tokens.is_approved_for_all(owner, operator)

    def set_approval_for_all(self, operator: str, approved: bool, caller: str) -> None:
        """Grant or revoke operator rights over every token the caller holds."""
        with self._operators_lock:
            tick = self._now()
            previous = self.tokens.set_approval_for_all(caller, operator, approved)
            if self.store is not None:
                try:
                    self.store.save_operators(self.tokens.operators())
                except BaseException:
                    logger.error(f"[LEDGER] Saving operators of {caller} failed, change rolled back")
                    self.tokens.set_approval_for_all(caller, operator, previous)
                    raise
            logger.info(f"[LEDGER] {caller} {'approved' if approved else 'revoked'} operator {operator}")
            self.events.publish([ApprovalForAll(
                tick=tick, owner=caller, operator=operator, approved=approved,
            )])

    def transfer(self, token_id: int, sender: str, receiver: str, caller: str) -> OwnershipRecord:
        with self._locked(token_id, missing=UnknownToken) as canvas:
            tick = self._now()
            rollback = self._token_rollback(token_id)
            record = self.tokens.transfer(token_id, sender, receiver, caller)
            logger.info(f"[LEDGER] Token {token_id} moved {sender} -> {receiver}")
            self._commit(canvas, [Transfer(
                tick=tick, canvas_id=token_id, sender=sender, receiver=receiver, token_id=token_id,
            )], rollback)
            return record

    def burn(self, token_id: int, caller: str) -> None:
        """Destroy a token. The canvas stays Claimed."""
        with self._locked(token_id, missing=UnknownToken) as canvas:
            tick = self._now()
            rollback = self._token_rollback(token_id)
            record = self.tokens.burn(token_id, caller)
            logger.info(f"[LEDGER] Token {token_id} burned by {caller}")
            self._commit(canvas, [Transfer(
                tick=tick, canvas_id=token_id, sender=record.holder, receiver="", token_id=token_id,
            )], rollback)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def restore(self) -> int:
        """Load persisted canvases into an empty ledger. Returns how many were loaded."""
        if self.store is None:
            return 0
        if self._canvases:
            raise RuntimeError("restore() requires an empty ledger")

        highest_tick = 0
        next_id = self.store.load_counter()
        for snapshot in self.store.load_canvases():
            canvas = snapshot.canvas
            self._canvases[canvas.id] = canvas
            self._locks[canvas.id] = threading.RLock()
            self.pixels.load(canvas.id, snapshot.pixels)
            if snapshot.token is not None:
                self.tokens.load(snapshot.token, snapshot.approved)
                highest_tick = max(highest_tick, snapshot.token.minted_at_tick)
            next_id = max(next_id, canvas.id + 1)
            highest_tick = max(highest_tick, canvas.created_at_tick, canvas.last_write_tick)

        self.tokens.load_operators(self.store.load_operators())
        self._next_id = next_id
        with self._tick_lock:
            self._highest_tick = max(self._highest_tick, highest_tick)
        logger.info(f"[LEDGER] Restored {len(self._canvases)} canvas(es), next id {next_id}")
        return len(self._canvases)
