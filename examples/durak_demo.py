"""
Example demonstrating the Durak service API.

This script provides a simple hot-seat command-line demo: two players share
one terminal, a match is created and joined through `DurakService`, and each
move is typed in by whoever is due to act. With ``--auto`` both seats are
played by a random policy instead.
"""

import asyncio
import logging
import random
import sys
from typing import Any, Dict, List, Optional, Tuple

from durak import DurakService
from durak.common.rules import can_beat, can_throw_in
from durak.match.state import MatchPhase
from durak.match.view import MatchView


class DurakDemo:
    """
    Demo class for the Durak service.

    This class provides a simple command-line interface for playing a
    two-player match, demonstrating the use of the DurakService API.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        auto: bool = False,
        seed: Optional[int] = None,
    ):
        """
        Initialize the demo.

        Args:
            config: Configuration options for the service
            auto: Pick every move at random instead of asking
            seed: Seed for the automatic player
        """
        default_config = {"hand_size": 6}

        if config:
            default_config.update(config)

        self.config = default_config
        self.service = DurakService(config=self.config)
        self.auto = auto
        self.rng = random.Random(seed)
        self.player_ids = ["Alice", "Bob"]
        self.latest_views: Dict[str, MatchView] = {}

    async def setup_game(self) -> None:
        """
        Create a match for the first player and seat the second.
        """
        print("Setting up Durak match...")

        await self.service.initialize()
        for player_id in self.player_ids:
            self.service.subscribe(player_id, self._on_update)

        created = await self.service.create_match(self.player_ids[0])
        print(f"{self.player_ids[0]} created match {created.match_id}")

        joined = await self.service.join_match(self.player_ids[1], created.match_id)
        if not joined.ok:
            raise RuntimeError(f"Could not join match: {joined.reason}")
        print(f"{self.player_ids[1]} joined, cards dealt.")

    def _on_update(self, view: MatchView) -> None:
        self.latest_views[view.viewer_id] = view

    async def play_game(self) -> None:
        """
        Play the match until it's over.
        """
        while True:
            view = await self.service.get_match_for_player(self.player_ids[0])
            if view is None or view.phase == MatchPhase.FINISHED:
                break

            actor = self._actor(view)
            actor_view = self.latest_views[actor]
            self._display_state(actor_view)

            action = await self._get_user_action(actor, actor_view)
            result = await self._execute(actor, action)
            if not result.ok:
                print(f"Move rejected ({result.status.value}).")

            print("\n" + "-" * 40)

        view = await self.service.get_match_for_player(self.player_ids[0])
        print("\nGame over!")
        if view.is_draw:
            print("The game ended in a draw.")
        else:
            loser = next(pid for pid in view.players if pid != view.winner_id)
            print(f"{view.winner_id} wins. The durak is: {loser}")

    def _actor(self, view: MatchView) -> str:
        """Whoever is due to act: the defender while attacks are open, else the attacker."""
        if any(pair.defense is None for pair in view.table):
            return view.defender_id
        return view.attacker_id

    def _available_actions(self, player_id: str, view: MatchView) -> List[Tuple]:
        actions = []
        table_cards = [
            card for pair in view.table for card in (pair.attack, pair.defense) if card
        ]

        if player_id == view.defender_id:
            for pair in view.table:
                if pair.defense is not None:
                    continue
                for card in view.hand:
                    if can_beat(pair.attack, card, view.trump_suit):
                        actions.append(("DEFEND", pair.attack.code, card.code))
            actions.append(("TAKE",))
            return actions

        if not view.table:
            actions.extend(("ATTACK", card.code) for card in view.hand)
            return actions

        if view.can_throw_in:
            actions.extend(
                ("THROW_IN", card.code)
                for card in view.hand
                if can_throw_in(card, table_cards)
            )
        actions.append(("PASS",))
        return actions

    async def _get_user_action(self, player_id: str, view: MatchView) -> Tuple:
        """
        Get a user action for ``player_id``.

        Returns:
            Tuple containing the action type and any card codes
        """
        action_list = self._available_actions(player_id, view)

        if self.auto:
            action = self.rng.choice(action_list)
            print(f"{player_id}: {' '.join(action)}")
            return action

        print(f"\n{player_id}'s turn. Valid actions:")
        for i, action in enumerate(action_list):
            print(f"{i+1}. {' '.join(action)}")

        choice = -1
        while choice < 1 or choice > len(action_list):
            try:
                choice_str = input(f"Enter your choice (1-{len(action_list)}): ")
                choice = int(choice_str)
            except ValueError:
                choice = -1

        return action_list[choice - 1]

    async def _execute(self, player_id: str, action: Tuple):
        kind = action[0]
        if kind == "ATTACK":
            return await self.service.attack(player_id, action[1])
        if kind == "DEFEND":
            return await self.service.defend(player_id, action[1], action[2])
        if kind == "THROW_IN":
            return await self.service.throw_in(player_id, action[1])
        if kind == "TAKE":
            return await self.service.take_cards(player_id)
        return await self.service.pass_turn(player_id)

    def _display_state(self, view: MatchView) -> None:
        """
        Display the match as the acting player sees it.

        Args:
            view: The acting player's view
        """
        print("\nMatch State:")
        print(f"Trump: {view.trump_card or view.trump_suit}")
        print(f"Deck remaining: {view.deck_count}")
        print(f"Last action: {view.last_action}")

        print("\nTable:")
        for i, pair in enumerate(view.table):
            defense_str = f" ← {pair.defense}" if pair.defense else ""
            print(f"  {i+1}. {pair.attack}{defense_str}")

        print("\nPlayers:")
        for player_id in view.players:
            role = ""
            if player_id == view.attacker_id:
                role = " (Attacker)"
            elif player_id == view.defender_id:
                role = " (Defender)"
            print(f"  {player_id}{role}: {view.hand_sizes[player_id]} cards")

        card_str = ", ".join(str(card) for card in view.hand)
        print(f"\n{view.viewer_id}'s cards: {card_str}")

    async def shutdown(self) -> None:
        """
        Shut down the service.
        """
        for player_id in self.player_ids:
            await self.service.leave_match(player_id)
        await self.service.cleanup()
        await self.service.shutdown()
        print("Service shut down.")


async def main():
    """
    Main function to run the demo.
    """
    config = {}
    seed = None

    if "--hand-size" in sys.argv:
        idx = sys.argv.index("--hand-size")
        if idx + 1 < len(sys.argv):
            try:
                config["hand_size"] = max(1, min(int(sys.argv[idx + 1]), 12))
            except ValueError:
                pass

    if "--seed" in sys.argv:
        idx = sys.argv.index("--seed")
        if idx + 1 < len(sys.argv):
            try:
                seed = int(sys.argv[idx + 1])
            except ValueError:
                pass

    if "--verbose" in sys.argv:
        logging.basicConfig(level=logging.DEBUG)

    demo = DurakDemo(config, auto="--auto" in sys.argv, seed=seed)

    try:
        await demo.setup_game()
        await demo.play_game()
    finally:
        await demo.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
