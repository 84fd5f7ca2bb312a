import unittest

from adaptive_learning.difficulty.controller import (
    DIFFICULTY_TITLES, DifficultyController, DifficultyModifiers
)


def play(controller, results, time_spent=5.0):
    for correct in results:
        controller.update_performance(correct, time_spent)
    return controller


class TestDifficultyController(unittest.TestCase):
    """Modifier rules of the live difficulty counter."""

    def setUp(self):
        self.controller = DifficultyController()

    def test_initial_modifiers(self):
        modifiers = self.controller.get_difficulty_modifiers()
        self.assertEqual(modifiers, DifficultyModifiers(
            range_multiplier=1.0, complexity_level=1, hint_availability=True, time_bonus=False
        ))

    def test_five_correct_answers(self):
        play(self.controller, [True] * 5)
        modifiers = self.controller.get_difficulty_modifiers()

        self.assertEqual(self.controller.performance.streak, 5)
        self.assertGreaterEqual(modifiers.complexity_level, 3)
        self.assertEqual(modifiers.range_multiplier, 1.5)
        self.assertFalse(modifiers.hint_availability)
        self.assertTrue(modifiers.time_bonus)

    def test_three_wrong_answers(self):
        play(self.controller, [False] * 3)
        modifiers = self.controller.get_difficulty_modifiers()

        self.assertEqual(self.controller.performance.streak, 0)
        self.assertTrue(modifiers.hint_availability)
        self.assertEqual(modifiers.range_multiplier, 0.7)
        self.assertEqual(modifiers.complexity_level, 0)

    def test_long_streak_reaches_top_level(self):
        play(self.controller, [True] * 6)
        modifiers = self.controller.get_difficulty_modifiers()
        self.assertEqual(modifiers.complexity_level, 4)
        self.assertEqual(self.controller.get_difficulty_description(), DIFFICULTY_TITLES[4])

    def test_streak_after_early_misses(self):
        play(self.controller, [False, False] + [True] * 6)
        modifiers = self.controller.get_difficulty_modifiers()
        self.assertEqual(modifiers.range_multiplier, 1.3)
        self.assertEqual(modifiers.complexity_level, 2)

    def test_broken_streak_narrows_range(self):
        play(self.controller, [True, True, True, False])
        self.assertEqual(self.controller.get_difficulty_modifiers().range_multiplier, 0.8)

    def test_slow_answers_lose_time_bonus(self):
        play(self.controller, [True] * 5, time_spent=20.0)
        self.assertFalse(self.controller.get_difficulty_modifiers().time_bonus)

    def test_modifiers_are_idempotent(self):
        play(self.controller, [True, False, True, True])
        first = self.controller.get_difficulty_modifiers()
        second = self.controller.get_difficulty_modifiers()
        self.assertEqual(first, second)

    def test_complexity_monotonic_in_success_rate(self):
        levels = []
        for wrong in range(6, -1, -1):
            controller = play(DifficultyController(), [False] * wrong + [True] * 6)
            levels.append(controller.get_difficulty_modifiers().complexity_level)
        self.assertEqual(levels, sorted(levels))

    def complexity_for(self, correct, total, streak):
        controller = DifficultyController()
        controller.performance.correct_answers = correct
        controller.performance.total_answers = total
        controller.performance.streak = streak
        return controller.get_difficulty_modifiers().complexity_level

    def test_complexity_monotonic_in_streak(self):
        for correct in (19, 17, 13, 8, 4):
            levels = [self.complexity_for(correct, 20, streak) for streak in range(8)]
            self.assertEqual(levels, sorted(levels), f"success rate {correct / 20}")
        levels = [self.complexity_for(19, 20, streak) for streak in range(8)]
        self.assertEqual(levels, [2, 2, 2, 2, 3, 3, 4, 4])

    def test_complexity_monotonic_in_success_rate_at_fixed_streak(self):
        for streak in (0, 4, 7):
            levels = [self.complexity_for(correct, 20, streak) for correct in range(21)]
            self.assertEqual(levels, sorted(levels), f"streak {streak}")
        levels = [self.complexity_for(correct, 20, 7) for correct in (4, 8, 13, 17, 19)]
        self.assertEqual(levels, [0, 1, 2, 3, 4])

    def test_running_average_time(self):
        self.controller.update_performance(True, 4.0)
        self.controller.update_performance(True, 8.0)
        self.controller.update_performance(False, 12.0)
        self.assertAlmostEqual(self.controller.performance.average_time, 8.0)

    def test_recent_results_window(self):
        play(self.controller, [False] * 5 + [True] * 5)
        self.assertEqual(self.controller.performance.recent_performance, 1.0)
        self.assertEqual(self.controller.performance.success_rate, 0.5)

    def test_best_streak_survives_miss(self):
        play(self.controller, [True] * 4 + [False])
        self.assertEqual(self.controller.performance.best_streak, 4)
        self.assertEqual(self.controller.performance.streak, 0)

    def test_level_is_recorded(self):
        self.controller.update_performance(True, 5.0, level=3)
        self.assertEqual(self.controller.performance.current_level, 3)

    def test_encouragement_messages(self):
        self.assertEqual(self.controller.get_encouragement_message(), "Don't give up! You're improving!")
        play(self.controller, [True] * 4)
        self.assertEqual(self.controller.get_encouragement_message(), "Excellent work! Keep it up!")
        play(self.controller, [True] * 2)
        self.assertEqual(self.controller.get_encouragement_message(), "Incredible streak! You're unstoppable!")

    def test_performance_stats(self):
        play(self.controller, [True, True])
        stats = self.controller.get_performance_stats()
        self.assertEqual(stats["streak"], 2)
        self.assertEqual(stats["success_rate"], 1.0)
        self.assertEqual(stats["last_five_results"], [True, True])
        self.assertIn(stats["difficulty_level"], DIFFICULTY_TITLES.values())

    def test_reset(self):
        play(self.controller, [True] * 6)
        self.controller.reset()
        self.assertEqual(self.controller.performance.total_answers, 0)
        self.assertEqual(self.controller.performance.streak, 0)
        self.assertEqual(self.controller.get_difficulty_modifiers().complexity_level, 1)


if __name__ == '__main__':
    unittest.main()
