import random
import re
import unittest

from src.shared.config_schema import AssemblyConfig
from src.tarpit import assembler, links
from src.tarpit.assembler import ContentAssembler

MAZE_ANCHOR = re.compile(r'<a href="/maze/([A-Za-z0-9]{4,15})\.html">\1</a>')
TOKENS = ["alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta"]


def body_of(page):
    return page.split("<body>", 1)[1].rsplit("</body>", 1)[0]


def strip_tags(markup):
    return re.sub(r"<[^>]+>", "", markup)


class TestAssemble(unittest.TestCase):
    def test_empty_token_stream_gives_bare_document(self):
        page = assembler.assemble([], AssemblyConfig(), "empty")
        self.assertEqual(
            page,
            "<!doctype html><html><head><title>empty</title></head>"
            "<body></body></html>",
        )

    def test_stripping_tags_recovers_tokens_without_links(self):
        config = AssemblyConfig(link_probability=0.0, paragraph_probability=0.3)
        page = assembler.assemble(TOKENS * 20, config, "t", random.Random(4))
        self.assertEqual(strip_tags(body_of(page)).split(), TOKENS * 20)

    def test_every_token_closes_a_paragraph_at_probability_one(self):
        config = AssemblyConfig(link_probability=0.0, paragraph_probability=1.0)
        page = assembler.assemble(TOKENS, config, "t", random.Random(1))
        self.assertEqual(page.count("<p>"), len(TOKENS))
        self.assertEqual(page.count("</p>"), len(TOKENS))
        self.assertNotIn("<p></p>", page)

    def test_paragraphs_are_balanced(self):
        config = AssemblyConfig(link_probability=0.1, paragraph_probability=0.2)
        page = assembler.assemble(TOKENS * 50, config, "t", random.Random(9))
        self.assertEqual(page.count("<p>"), page.count("</p>"))
        self.assertNotRegex(page, r"<p>\s*</p>")

    def test_every_token_gets_a_maze_link_at_probability_one(self):
        config = AssemblyConfig(link_probability=1.0, paragraph_probability=0.0)
        page = assembler.assemble(TOKENS, config, "t", random.Random(2))
        self.assertEqual(len(MAZE_ANCHOR.findall(page)), len(TOKENS))
        self.assertEqual(page.count("<a "), len(TOKENS))

    def test_links_stay_inside_paragraphs(self):
        config = AssemblyConfig(link_probability=1.0, paragraph_probability=1.0)
        page = assembler.assemble(TOKENS, config, "t", random.Random(2))
        for chunk in re.findall(r"<p>(.*?)</p>", page):
            self.assertEqual(chunk.count("<a "), 1)

    def test_empty_linkpath_links_from_root(self):
        config = AssemblyConfig(link_probability=1.0, linkpath="/")
        page = assembler.assemble(["x"], config, "t", random.Random(3))
        self.assertRegex(page, r'<a href="/[A-Za-z0-9]{4,15}\.html">')

    def test_title_and_tokens_are_escaped(self):
        config = AssemblyConfig(link_probability=0.0)
        page = assembler.assemble(["a<b", "&", "c>"], config, "<script>x</script>")
        self.assertIn("<title>&lt;script&gt;x&lt;/script&gt;</title>", page)
        self.assertIn(" a&lt;b &amp; c&gt;", page)
        self.assertNotIn("<script>", page)

    def test_same_seed_same_document(self):
        config = AssemblyConfig(link_probability=0.2, paragraph_probability=0.2)
        first = assembler.assemble(TOKENS * 10, config, "t", random.Random(77))
        second = assembler.assemble(TOKENS * 10, config, "t", random.Random(77))
        self.assertEqual(first, second)


class TestDecoyLinks(unittest.TestCase):
    def test_decoy_never_appears_at_probability_zero(self):
        config = AssemblyConfig(
            link_probability=1.0, decoy_path="/trap.zip", decoy_probability=0.0
        )
        page = assembler.assemble(TOKENS * 5, config, "t", random.Random(5))
        self.assertNotIn("/trap.zip", page)

    def test_decoy_appears_once_per_document(self):
        config = AssemblyConfig(
            link_probability=1.0, decoy_path="/trap.zip", decoy_probability=1.0
        )
        with self.assertLogs("src.tarpit.assembler", level="INFO") as cm:
            page = ContentAssembler(config).assemble(TOKENS, "page", random.Random(5))

        self.assertEqual(page.count('href="/trap.zip"'), 1)
        self.assertEqual(len(MAZE_ANCHOR.findall(page)), len(TOKENS) - 1)
        self.assertEqual(len(cm.output), 1)
        self.assertIn("/trap.zip", cm.output[0])

    def test_decoy_once_resets_between_documents(self):
        config = AssemblyConfig(
            link_probability=1.0, decoy_path="/trap.zip", decoy_probability=1.0
        )
        maze = ContentAssembler(config)
        for seed in range(3):
            page = maze.assemble(TOKENS, "page", random.Random(seed))
            self.assertEqual(page.count('href="/trap.zip"'), 1)

    def test_repeated_decoys_when_not_limited(self):
        config = AssemblyConfig(
            link_probability=1.0,
            decoy_path="/trap.zip",
            decoy_probability=1.0,
            decoy_once=False,
        )
        page = assembler.assemble(TOKENS, config, "t", random.Random(6))
        self.assertEqual(page.count('href="/trap.zip"'), len(TOKENS))

    def test_blank_decoy_path_disables_decoys(self):
        config = AssemblyConfig(decoy_path="  ", decoy_probability=1.0)
        self.assertIsNone(config.decoy_path)
        self.assertFalse(config.decoy_enabled)


class TestLinks(unittest.TestCase):
    def test_generate_link_length_and_alphabet(self):
        rng = random.Random(12)
        lengths = set()
        for _ in range(2000):
            link = links.generate_link(rng)
            self.assertRegex(link, r"^[A-Za-z0-9]+$")
            lengths.add(len(link))
        self.assertEqual(lengths, set(range(4, 16)))

    def test_flyweight_builds_maze_anchor(self):
        flyweight = links.LinkFlyweight("/maze")
        self.assertEqual(flyweight.href("abcd"), "/maze/abcd.html")
        self.assertEqual(
            flyweight.get_link("abcd"), '<a href="/maze/abcd.html">abcd</a>'
        )

    def test_anchor_escapes_href_and_text(self):
        self.assertEqual(
            links.anchor('/x?a=1&b="2"', "<t>"),
            '<a href="/x?a=1&amp;b=&quot;2&quot;">&lt;t&gt;</a>',
        )


if __name__ == "__main__":
    unittest.main()
