"""
Durak service API.

This module provides `DurakService`, the asynchronous facade a transport
(HTTP handlers, a WebSocket hub, a chat bot) talks to. It decodes card codes
at the boundary, routes actions to the `MatchRegistry`, logs outcomes, and
pushes each player's fresh `MatchView` to their subscribers whenever their
match changes.

Example:
    ```python
    service = DurakService()
    await service.initialize()
    result = await service.create_match("alice")
    await service.join_match("bob", result.match_id)
    view = await service.get_match_for_player("alice")
    await service.attack(view.attacker_id, view.hand[0].code)
    await service.shutdown()
    ```
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Set
import asyncio
import inspect
import logging
import threading

from durak.common.card import Card
from durak.errors import MalformedCardError
from durak.events import EventPriority, MatchEventType
from durak.match.view import MatchView
from durak.registry.manager import MatchRegistry
from durak.registry.results import (
    ActionResult,
    ActionStatus,
    MatchSummary,
    RegistryResult,
)

logger = logging.getLogger("durak.api")

# Keys consumed by the service itself; everything else configures the registry
_SERVICE_KEYS = ("finished_match_ttl",)


class DurakService:
    """
    Transport-facing API for Durak matches.

    Attributes:
        registry: The match registry every action is routed through
        config: Configuration options
        event_bus: Emitter the registry and its sessions publish on
        event_handlers: Unsubscribe functions for the service's own event handlers
    """

    def __init__(
        self,
        registry: Optional[MatchRegistry] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the service.

        Args:
            registry: Registry to use; one is built from ``config`` if None
            config: Configuration options. ``finished_match_ttl`` (seconds, or
                None) limits which finished matches `cleanup` reclaims; the
                remaining keys are passed to the registry.
        """
        default_config = {"finished_match_ttl": None}

        if config:
            default_config.update(config)

        self.config = default_config

        if registry is None:
            registry_config = {
                key: value
                for key, value in self.config.items()
                if key not in _SERVICE_KEYS
            }
            registry = MatchRegistry(config=registry_config)

        self.registry = registry
        self.event_bus = registry.event_bus
        self.event_handlers: Dict[str, List[Callable]] = {}

        self._subscribers: Dict[str, List[Callable[[MatchView], Any]]] = defaultdict(
            list
        )
        self._subscriber_lock = threading.Lock()
        self._pending_pushes: Set[asyncio.Task] = set()

    async def initialize(self) -> None:
        """
        Start pushing state updates to subscribers.
        """
        self.on(MatchEventType.STATE_CHANGED, self._on_state_changed)

    async def shutdown(self) -> None:
        """
        Stop pushing state updates, drop every subscriber, and cancel pushes
        still in flight.
        """
        for unsubscribe_funcs in self.event_handlers.values():
            for unsubscribe in unsubscribe_funcs:
                unsubscribe()

        self.event_handlers.clear()

        with self._subscriber_lock:
            self._subscribers.clear()

        pending = list(self._pending_pushes)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending_pushes.clear()

    def on(
        self,
        event_type: MatchEventType,
        callback: Callable[[Dict[str, Any]], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Register a handler for engine events, removed again on `shutdown`.

        Returns:
            Unsubscribe function
        """
        unsubscribe = self.event_bus.on(event_type, callback, priority)
        self.event_handlers.setdefault(event_type.name, []).append(unsubscribe)
        return unsubscribe

    def subscribe(
        self, player_id: str, callback: Callable[[MatchView], Any]
    ) -> Callable[[], None]:
        """
        Receive ``player_id``'s view of their match after every change to it.

        The callback may be a plain function or a coroutine function; a
        coroutine is scheduled on the running event loop.

        Args:
            player_id: Player whose view to push
            callback: Called with the fresh `MatchView`

        Returns:
            Function that cancels the subscription
        """
        with self._subscriber_lock:
            self._subscribers[player_id].append(callback)

        def unsubscribe():
            with self._subscriber_lock:
                callbacks = self._subscribers.get(player_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(player_id, None)

        return unsubscribe

    # Match lifecycle

    async def create_match(self, player_id: str) -> RegistryResult:
        """
        Create a match with ``player_id`` as its first player.

        Returns:
            Result holding the new match ID on success
        """
        result = self.registry.create_match(player_id)
        if result.ok:
            logger.info(f"Player {player_id} created match {result.match_id}")
        else:
            logger.info(
                f"Player {player_id} could not create a match: {result.error.value}"
            )
        return result

    async def join_match(self, player_id: str, match_id: str) -> RegistryResult:
        """
        Join an open match; the second player's arrival starts it.
        """
        result = self.registry.join_match(player_id, match_id)
        if result.ok:
            logger.info(f"Player {player_id} joined match {match_id}")
        else:
            logger.info(
                f"Player {player_id} could not join match {match_id}: "
                f"{result.error.value}"
            )
        return result

    async def leave_match(self, player_id: str) -> RegistryResult:
        """
        Leave the current match, forfeiting it if it is in progress.
        """
        result = self.registry.leave_match(player_id)
        if result.ok:
            logger.info(f"Player {player_id} left match {result.match_id}")
        else:
            logger.info(f"Player {player_id} could not leave: {result.error.value}")
        return result

    async def get_match_for_player(self, player_id: str) -> Optional[MatchView]:
        """
        Get the player's view of their match, or None if they are in none.
        """
        return self.registry.get_match_for_player(player_id)

    async def list_open_matches(self) -> List[MatchSummary]:
        """
        List matches waiting for a second player.
        """
        return self.registry.list_open_matches()

    async def get_stats(self) -> Dict[str, int]:
        """
        Get counts of live matches and players.
        """
        return self.registry.get_stats().to_dict()

    async def cleanup(self) -> Dict[str, int]:
        """
        Reclaim empty and finished matches.

        Meant to be called periodically by whatever schedules maintenance.

        Returns:
            Number of matches reclaimed, by reason
        """
        empty = self.registry.reclaim_empty()
        finished = self.registry.reclaim_finished(self.config["finished_match_ttl"])
        if empty or finished:
            logger.info(
                f"Cleanup reclaimed {empty} empty and {finished} finished matches"
            )
        return {"empty": empty, "finished": finished}

    # Moves

    async def attack(self, player_id: str, card: str) -> ActionResult:
        """
        Open the round with the card coded ``card`` (for example ``"7h"``).
        """
        decoded = self._decode(player_id, card)
        if decoded is None:
            return ActionResult(ActionStatus.MALFORMED)
        return self._log_action(
            player_id, "attack", self.registry.attack(player_id, decoded)
        )

    async def defend(
        self, player_id: str, attack_card: str, defense_card: str
    ) -> ActionResult:
        """
        Cover the attack coded ``attack_card`` with ``defense_card``.
        """
        attack = self._decode(player_id, attack_card)
        defense = self._decode(player_id, defense_card)
        if attack is None or defense is None:
            return ActionResult(ActionStatus.MALFORMED)
        return self._log_action(
            player_id, "defend", self.registry.defend(player_id, attack, defense)
        )

    async def throw_in(self, player_id: str, card: str) -> ActionResult:
        """
        Throw in the card coded ``card``.
        """
        decoded = self._decode(player_id, card)
        if decoded is None:
            return ActionResult(ActionStatus.MALFORMED)
        return self._log_action(
            player_id, "throw_in", self.registry.throw_in(player_id, decoded)
        )

    async def pass_turn(self, player_id: str) -> ActionResult:
        """
        Declare "Beat!" to end a fully defended round.
        """
        return self._log_action(
            player_id, "pass_turn", self.registry.pass_turn(player_id)
        )

    async def take_cards(self, player_id: str) -> ActionResult:
        """
        Take every card on the table into the defender's hand.
        """
        return self._log_action(
            player_id, "take_cards", self.registry.take_cards(player_id)
        )

    def _decode(self, player_id: str, code: str) -> Optional[Card]:
        try:
            return Card.parse(code)
        except MalformedCardError as e:
            logger.debug(f"Player {player_id} sent a malformed card: {e}")
            return None

    def _log_action(
        self, player_id: str, action: str, result: ActionResult
    ) -> ActionResult:
        if result.status == ActionStatus.NOT_FOUND:
            logger.debug(f"Player {player_id} tried {action} outside of any match")
        elif result.status == ActionStatus.REJECTED:
            logger.debug(f"Rejected {action} by player {player_id}")
        return result

    # Event handlers

    def _on_state_changed(self, data: Dict[str, Any]) -> None:
        """
        Push every subscribed player of the changed match their new view.
        """
        session = self.registry.get_session(data["match_id"])
        if session is None:
            return

        for player_id in session.player_ids:
            with self._subscriber_lock:
                callbacks = list(self._subscribers.get(player_id, []))
            if not callbacks:
                continue

            view = session.view_for(player_id)
            for callback in callbacks:
                self._deliver(callback, view)

    def _deliver(self, callback: Callable[[MatchView], Any], view: MatchView) -> None:
        try:
            result = callback(view)
        except Exception as e:
            logger.error(
                f"Error pushing state to player {view.viewer_id}: {e}", exc_info=True
            )
            return

        if inspect.isawaitable(result):
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning(
                    f"No running event loop to push state to player {view.viewer_id}"
                )
                if inspect.iscoroutine(result):
                    result.close()
                return
            task = loop.create_task(result)
            self._pending_pushes.add(task)
            task.add_done_callback(
                lambda done: self._on_push_done(done, view.viewer_id)
            )

    def _on_push_done(self, task: asyncio.Task, player_id: str) -> None:
        self._pending_pushes.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error(
                f"Error pushing state to player {player_id}: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )
