import random
import unittest

from src.markov import walk
from src.markov.chain import ChainModel
from src.markov.walk import GenerationState, MarkovWalker, sample
from src.shared.errors import GenerationError


class FirstChoiceRandom(random.Random):
    """Always picks the first element."""

    def choice(self, seq):
        return seq[0]


class DeadEndModel:
    """Model whose only key never has successors."""

    def random_key(self, rng):
        return "stuck"

    def successors(self, token):
        return ()


CYCLIC_TOKENS = "a b c a d b a c".split()


class TestSample(unittest.TestCase):
    def setUp(self):
        self.model = ChainModel.build(["a", "b", "a", "c", "a", "b"])

    def test_first_choice_walk_alternates(self):
        tokens = sample(self.model, 6, FirstChoiceRandom())
        self.assertEqual(tokens, ["a", "b", "a", "b", "a", "b"])

    def test_sample_returns_exactly_n_tokens(self):
        rng = random.Random(7)
        for n in (0, 1, 2, 17, 500):
            self.assertEqual(len(sample(self.model, n, rng)), n)

    def test_sample_zero_does_not_touch_rng(self):
        rng = random.Random(3)
        before = rng.getstate()
        self.assertEqual(sample(self.model, 0, rng), [])
        self.assertEqual(rng.getstate(), before)

    def test_negative_count_rejected(self):
        with self.assertRaises(ValueError):
            sample(self.model, -1)

    def test_same_seed_same_sequence(self):
        first = sample(self.model, 200, random.Random("seed"))
        second = sample(self.model, 200, random.Random("seed"))
        self.assertEqual(first, second)

    def test_emitted_pairs_follow_trained_transitions(self):
        model = ChainModel.build(CYCLIC_TOKENS)
        tokens = sample(model, 2000, random.Random(11))
        for current, following in zip(tokens, tokens[1:]):
            self.assertIn(following, model.successors(current))

    def test_only_trained_tokens_are_emitted(self):
        tokens = sample(self.model, 300, random.Random(5))
        self.assertTrue(set(tokens) <= {"a", "b", "c"})

    def test_dead_end_is_redrawn_without_emitting(self):
        # "b" never precedes anything, so every walk restarts at "a".
        model = ChainModel.build(["a", "b"])
        self.assertEqual(sample(model, 5, random.Random(1)), ["a"] * 5)


class TestStep(unittest.TestCase):
    def test_cursor_always_lands_in_successor_collection(self):
        model = ChainModel.build(["a", "b", "a", "c", "a", "b", "z"])
        state = GenerationState(rng=random.Random(9))
        for _ in range(1000):
            token = walk.step(model, state)
            self.assertIn(state.current, model.successors(token))

    def test_successor_frequency_follows_duplicates(self):
        model = ChainModel({"a": ["b", "b", "b", "c"], "b": ["a"], "c": ["a"]})
        state = GenerationState(rng=random.Random(2024))
        picks = []
        for _ in range(4000):
            state.current = "a"
            walk.step(model, state)
            picks.append(state.current)
        share = picks.count("b") / len(picks)
        self.assertGreater(share, 0.70)
        self.assertLess(share, 0.80)

    def test_exhausted_redraws_raise_generation_error(self):
        state = GenerationState(rng=random.Random(0))
        with self.assertRaises(GenerationError):
            walk.step(DeadEndModel(), state)


class TestMarkovWalker(unittest.TestCase):
    def test_walker_is_its_own_iterator(self):
        walker = MarkovWalker(ChainModel.build(CYCLIC_TOKENS), random.Random(1))
        self.assertIs(iter(walker), walker)

    def test_walker_matches_bulk_sample_for_same_seed(self):
        model = ChainModel.build(CYCLIC_TOKENS)
        walker = MarkovWalker(model, random.Random(42))
        pulled = [next(walker) for _ in range(50)]
        self.assertEqual(pulled, sample(model, 50, random.Random(42)))

    def test_walker_continues_where_it_stopped(self):
        model = ChainModel.build(CYCLIC_TOKENS)
        walker = MarkovWalker(model, random.Random(8))
        combined = walker.take(10) + walker.take(10)
        self.assertEqual(combined, sample(model, 20, random.Random(8)))


if __name__ == "__main__":
    unittest.main()
