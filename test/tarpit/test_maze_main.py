import os
import tempfile
import unittest
from unittest.mock import patch

from fastapi import FastAPI

from src.tarpit import __main__ as maze_main


class TestMazeMain(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.corpus = self.tmp.name
        patcher = patch("src.tarpit.__main__.uvicorn.run")
        self.mock_run = patcher.start()
        self.addCleanup(patcher.stop)

    def _write_corpus(self, text):
        with open(os.path.join(self.corpus, "corpus.txt"), "w", encoding="utf-8") as f:
            f.write(text)

    def test_valid_run_starts_server(self):
        self._write_corpus("one two three one two")
        code = maze_main.main(
            ["-t", self.corpus, "--listen-addr", "127.0.0.1", "--listen-port", "8080"]
        )
        self.assertEqual(code, 0)
        self.mock_run.assert_called_once()
        args, kwargs = self.mock_run.call_args
        self.assertIsInstance(args[0], FastAPI)
        self.assertEqual(kwargs["host"], "127.0.0.1")
        self.assertEqual(kwargs["port"], 8080)

    def test_train_dir_from_environment(self):
        self._write_corpus("one two three")
        with patch.dict(os.environ, {"MAZE_TRAIN_DIR": self.corpus}):
            code = maze_main.main([])
        self.assertEqual(code, 0)
        self.assertEqual(self.mock_run.call_args.kwargs["port"], 3005)

    def test_inverted_token_bounds_exit_before_serving(self):
        self._write_corpus("one two three")
        code = maze_main.main(
            ["-t", self.corpus, "--min-tokens", "100", "--max-tokens", "10"]
        )
        self.assertEqual(code, maze_main.EXIT_CONFIG_ERROR)
        self.mock_run.assert_not_called()

    def test_missing_train_dir_is_a_config_error(self):
        self.assertEqual(maze_main.main([]), maze_main.EXIT_CONFIG_ERROR)
        self.mock_run.assert_not_called()

    def test_empty_corpus_exits_with_training_error(self):
        code = maze_main.main(["-t", self.corpus])
        self.assertEqual(code, maze_main.EXIT_TRAINING_ERROR)
        self.mock_run.assert_not_called()

    def test_parser_maps_train_flag(self):
        args = maze_main.build_parser().parse_args(["--train", "/srv/corpus"])
        self.assertEqual(args.train_dir, "/srv/corpus")
        self.assertIsNone(args.min_tokens)


if __name__ == "__main__":
    unittest.main()
