import random
import unittest

from conquest.game import Game, MoveOutcome, create_game, resolve_attack
from conquest.player import Player, build_players
from conquest.world import world_from_graph
from conquest.world_builder import build_world


HUMAN = Player(0, True)
AI_ONE = Player(1, False)
AI_TWO = Player(2, False)


def _line_game(owners, armies, *, players=(HUMAN, AI_ONE), **kwargs) -> Game:
    """Countries 0-1-2-3 in a line."""
    graph = {0: {1}, 1: {0, 2}, 2: {1, 3}, 3: {2}}
    world = world_from_graph(graph, owners=owners, armies=armies)
    return Game(world=world, players=players, **kwargs)


class ResolveAttackTests(unittest.TestCase):
    def test_attack_win(self) -> None:
        self.assertEqual(resolve_attack(5, 3), (1, 1, MoveOutcome.ATTACK_WIN))

    def test_attack_lose(self) -> None:
        self.assertEqual(resolve_attack(3, 2), (1, 0, MoveOutcome.ATTACK_LOSE))
        self.assertEqual(resolve_attack(2, 4), (1, 3, MoveOutcome.ATTACK_LOSE))

    def test_move_into_unowned(self) -> None:
        self.assertEqual(resolve_attack(4, 0, target_owned=False), (1, 3, MoveOutcome.MOVE))

    def test_single_army_cannot_leave(self) -> None:
        self.assertEqual(resolve_attack(1, 0), (1, 0, MoveOutcome.ATTACK_LOSE))

    def test_never_creates_units(self) -> None:
        for source in range(0, 8):
            for target in range(0, 8):
                src_after, tgt_after, _ = resolve_attack(source, target)
                self.assertLessEqual(src_after + tgt_after, source + target)
                self.assertGreaterEqual(src_after, 0)
                self.assertGreaterEqual(tgt_after, 0)

    def test_negative_armies_rejected(self) -> None:
        with self.assertRaises(ValueError):
            resolve_attack(-1, 2)


class SelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.game = _line_game({0: 0, 1: 0, 2: 1, 3: 1}, {0: 2, 1: 5, 2: 3, 3: 1})

    def test_can_select_only_own_countries(self) -> None:
        self.assertTrue(self.game.can_select_country(0))
        self.assertTrue(self.game.can_select_country(self.game.country(1)))
        self.assertFalse(self.game.can_select_country(2))

    def test_select_and_deselect(self) -> None:
        game, outcome = self.game.select_country(1)
        self.assertEqual(outcome, MoveOutcome.SELECT)
        self.assertEqual(game.selected_country.id, 1)
        self.assertEqual(game.world, self.game.world)

        game, outcome = game.select_country(1)
        self.assertEqual(outcome, MoveOutcome.DESELECT)
        self.assertIsNone(game.selected_country)

    def test_reselect_other_own_country(self) -> None:
        game, _ = self.game.select_country(1)
        game, outcome = game.select_country(0)
        self.assertEqual(outcome, MoveOutcome.SELECT)
        self.assertEqual(game.selected_id, 0)

    def test_can_move_to_adjacent_enemy_only(self) -> None:
        self.assertFalse(self.game.can_move_to_country(2))
        game, _ = self.game.select_country(1)
        self.assertTrue(game.can_move_to_country(2))
        self.assertFalse(game.can_move_to_country(0))
        self.assertFalse(game.can_move_to_country(3))

    def test_invalid_click_is_noop(self) -> None:
        game, outcome = self.game.select_country(2)
        self.assertEqual(outcome, MoveOutcome.NONE)
        self.assertIs(game, self.game)

        selected, _ = self.game.select_country(0)
        game, outcome = selected.select_country(3)
        self.assertEqual(outcome, MoveOutcome.NONE)
        self.assertIs(game, selected)

    def test_attack_win_transfers_ownership(self) -> None:
        game, _ = self.game.select_country(1)
        game, outcome = game.select_country(2)
        self.assertEqual(outcome, MoveOutcome.ATTACK_WIN)
        self.assertEqual(game.country(2).owner, 0)
        self.assertEqual(game.country(2).armies, 1)
        self.assertEqual(game.country(1).armies, 1)
        self.assertIsNone(game.selected_id)
        self.assertLessEqual(game.world.total_armies(), self.game.world.total_armies())
        # the original value is untouched
        self.assertEqual(self.game.country(2).owner, 1)

    def test_attack_lose_keeps_ownership(self) -> None:
        game = _line_game({0: 0, 1: 0, 2: 1, 3: 1}, {0: 2, 1: 3, 2: 3, 3: 1})
        game, _ = game.select_country(1)
        game, outcome = game.select_country(2)
        self.assertEqual(outcome, MoveOutcome.ATTACK_LOSE)
        self.assertEqual(game.country(2).owner, 1)
        self.assertEqual(game.country(2).armies, 1)
        self.assertEqual(game.country(1).armies, 1)

    def test_move_into_unowned_country(self) -> None:
        game = _line_game({0: 0, 1: 0, 3: 1}, {0: 2, 1: 4, 2: 0, 3: 1})
        game, _ = game.select_country(1)
        game, outcome = game.select_country(2)
        self.assertEqual(outcome, MoveOutcome.MOVE)
        self.assertEqual(game.country(2).owner, 0)
        self.assertEqual(game.world.total_armies(), 7)

    def test_unknown_country_fails_fast(self) -> None:
        with self.assertRaises(ValueError):
            self.game.select_country(99)
        with self.assertRaises(ValueError):
            self.game.can_select_country(-1)

    def test_pause_blocks_selection(self) -> None:
        paused = self.game.toggle_pause()
        self.assertTrue(paused.paused)
        self.assertEqual(paused.world, self.game.world)
        self.assertEqual(paused.current_index, self.game.current_index)
        self.assertFalse(paused.can_select_country(0))
        game, outcome = paused.select_country(0)
        self.assertEqual(outcome, MoveOutcome.NONE)
        self.assertIs(game, paused)
        self.assertFalse(paused.toggle_pause().paused)


class TurnTests(unittest.TestCase):
    def test_end_turn_advances_and_wraps(self) -> None:
        game = _line_game({0: 0, 1: 1, 2: 2, 3: 2}, {0: 1, 1: 1, 2: 1, 3: 1}, players=(HUMAN, AI_ONE, AI_TWO))
        game = game.end_turn()
        self.assertEqual(game.current_player, AI_ONE)
        game = game.end_turn()
        self.assertEqual(game.current_player, AI_TWO)
        game = game.end_turn()
        self.assertEqual(game.current_player, HUMAN)

    def test_end_turn_skips_eliminated_players(self) -> None:
        game = _line_game({0: 0, 1: 0, 2: 2, 3: 2}, {0: 1, 1: 1, 2: 1, 3: 1}, players=(HUMAN, AI_ONE, AI_TWO))
        self.assertTrue(game.is_eliminated(AI_ONE))
        game = game.end_turn()
        self.assertEqual(game.current_player, AI_TWO)

    def test_end_turn_clears_selection(self) -> None:
        game = _line_game({0: 0, 1: 0, 2: 1, 3: 1}, {0: 2, 1: 5, 2: 3, 3: 1})
        game, _ = game.select_country(0)
        game = game.end_turn()
        self.assertIsNone(game.selected_id)

    def test_reinforcements_fill_up_to_capacity(self) -> None:
        graph = {0: {1}, 1: {0, 2}, 2: {1}}
        world = world_from_graph(
            graph,
            owners={0: 0, 1: 1, 2: 1},
            armies={0: 1, 1: 1, 2: 4},
            capacities={0: 3, 1: 2, 2: 4},
        )
        game = Game(world=world, players=(HUMAN, AI_ONE), reinforcements=True)
        game = game.end_turn()
        self.assertEqual(game.country(1).armies, 2)
        self.assertEqual(game.country(2).armies, 4)
        self.assertEqual(game.country(0).armies, 1)

    def test_invalid_current_index(self) -> None:
        with self.assertRaises(ValueError):
            _line_game({0: 0}, {}, current_index=5)

    def test_selection_must_belong_to_current_player(self) -> None:
        owners = {0: 0, 1: 1, 2: 1, 3: 1}
        armies = {0: 1, 1: 1, 2: 9, 3: 1}
        with self.assertRaises(ValueError):
            _line_game(owners, armies, selected_id=2)
        game = _line_game(owners, armies, selected_id=0)
        self.assertEqual(game.selected_country.id, 0)


class GameOverTests(unittest.TestCase):
    def test_human_wins_by_taking_last_country(self) -> None:
        world = world_from_graph({0: {1}, 1: {0}}, owners={0: 0, 1: 1}, armies={0: 5, 1: 1})
        game = Game(world=world, players=(HUMAN, AI_ONE))
        self.assertFalse(game.over)
        game, _ = game.select_country(0)
        game, outcome = game.select_country(1)
        self.assertEqual(outcome, MoveOutcome.ATTACK_WIN)
        self.assertTrue(game.over)
        self.assertTrue(game.win)
        self.assertFalse(game.lose)
        self.assertEqual(game.winner, HUMAN)

    def test_human_eliminated_loses(self) -> None:
        game = _line_game({0: 1, 1: 1, 2: 2, 3: 2}, {0: 1, 1: 1, 2: 1, 3: 1}, players=(HUMAN, AI_ONE, AI_TWO))
        self.assertTrue(game.over)
        self.assertTrue(game.lose)
        self.assertFalse(game.win)

    def test_ai_only_game_ends_with_single_owner(self) -> None:
        game = _line_game({0: 1, 1: 1, 2: 2, 3: 2}, {0: 1, 1: 1, 2: 1, 3: 1}, players=(AI_ONE, AI_TWO))
        self.assertFalse(game.over)
        game = _line_game({0: 1, 1: 1, 2: 1, 3: 1}, {0: 1, 1: 1, 2: 1, 3: 1}, players=(AI_ONE, AI_TWO))
        self.assertTrue(game.over)
        self.assertFalse(game.win)
        self.assertFalse(game.lose)
        self.assertEqual(game.winner, AI_ONE)

    def test_transitions_are_noops_once_over(self) -> None:
        game = _line_game({0: 0, 1: 0, 2: 0, 3: 0}, {0: 3, 1: 1, 2: 1, 3: 1})
        self.assertTrue(game.over)
        self.assertIs(game.end_turn(), game)
        after, outcome = game.select_country(0)
        self.assertIs(after, game)
        self.assertEqual(outcome, MoveOutcome.NONE)
        self.assertFalse(game.can_select_country(0))


class CreateGameTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.world = build_world(160, 120, seed=3, country_count=12)
        cls.players = build_players(4)

    def test_every_country_assigned(self) -> None:
        game = create_game(self.players, self.world, seed=5)
        self.assertTrue(all(c.owner is not None for c in game.world))
        for player in self.players:
            self.assertGreater(len(game.world.owned_by(player.id)), 0)
        self.assertFalse(game.over)
        self.assertEqual(game.current_player, self.players[0])

    def test_armies_seeded_with_distributor(self) -> None:
        game = create_game(self.players, self.world, seed=5, initial_armies=6)
        for player in self.players:
            owned = game.world.owned_by(player.id)
            capacity = sum(c.capacity for c in owned)
            self.assertEqual(sum(c.armies for c in owned), min(6, capacity))
            for country in owned:
                self.assertLessEqual(country.armies, country.capacity)

    def test_too_many_players(self) -> None:
        with self.assertRaises(ValueError):
            create_game(build_players(13), self.world)
        with self.assertRaises(ValueError):
            create_game((), self.world)

    def test_random_play_never_creates_units(self) -> None:
        game = create_game(self.players, self.world, seed=8)
        start_total = game.world.total_armies()
        rng = random.Random(4)
        for _ in range(400):
            if game.over:
                break
            if rng.random() < 0.1:
                game = game.end_turn()
            else:
                game, _ = game.select_country(rng.randrange(len(game.world)))
            self.assertLessEqual(game.world.total_armies(), start_total)
            self.assertTrue(all(c.armies >= 0 for c in game.world))
            if game.selected_id is not None:
                self.assertEqual(game.selected_country.owner, game.current_player.id)
            self.assertFalse(game.is_eliminated(game.current_player))


if __name__ == "__main__":
    unittest.main()
