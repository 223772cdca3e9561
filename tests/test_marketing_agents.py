import unittest

from application.services.marketing_agents import (
    ENGLISH_AGENTS,
    POLISH_AGENTS,
    ContentAgent,
    StrategyAgent,
    agent_prompts_for,
    split_posts,
)
from domain.errors import GenerationFailed, GenerationFailureKind, InvalidConfig
from tests.fakes import FailingGenerator, RecordingGenerator, TempContainerMixin, make_container

BRAND = "Acme roasts single-origin coffee for remote workers."


class BrokenGenerator(RecordingGenerator):
    def generate(self, system_prompt, history, current_message, tools=None) -> str:
        raise ConnectionError("connection reset")


class TestStrategyAgent(unittest.TestCase):
    def test_prompt_carries_the_knowledge_base(self):
        generator = RecordingGenerator("TARGET AUDIENCE: remote workers")

        strategy = StrategyAgent(generator, ENGLISH_AGENTS).run(BRAND)

        self.assertEqual(strategy, "TARGET AUDIENCE: remote workers")
        [request] = generator.requests
        self.assertEqual(request["system_prompt"], ENGLISH_AGENTS.strategy_system_prompt)
        self.assertEqual(request["history"], [])
        self.assertIn(f"KNOWLEDGE BASE:\n{BRAND}", request["current_message"])
        self.assertIsNone(request["tools"])

    def test_empty_response_uses_fallback(self):
        agent = StrategyAgent(RecordingGenerator("  "), POLISH_AGENTS)

        with self.assertLogs("application.services.marketing_agents", level="WARNING"):
            self.assertEqual(agent.run(BRAND), "Nie udało się wygenerować strategii.")

    def test_short_knowledge_base_is_rejected(self):
        generator = RecordingGenerator()

        with self.assertRaises(InvalidConfig):
            StrategyAgent(generator, ENGLISH_AGENTS).run("too short")
        self.assertEqual(generator.requests, [])

    def test_generation_failures_propagate(self):
        with self.assertRaises(GenerationFailed) as raised:
            StrategyAgent(FailingGenerator(), ENGLISH_AGENTS).run(BRAND)
        self.assertEqual(raised.exception.kind, GenerationFailureKind.QUOTA_EXCEEDED)

        with self.assertRaises(GenerationFailed) as raised:
            StrategyAgent(BrokenGenerator(), ENGLISH_AGENTS).run(BRAND)
        self.assertEqual(raised.exception.kind, GenerationFailureKind.UNKNOWN)
        self.assertIsInstance(raised.exception.__cause__, ConnectionError)


class TestContentAgent(unittest.TestCase):
    def test_posts_are_split_on_separator(self):
        reply = "---POST---\nFirst post #coffee\n\n---POST---\nSecond post\n---POST---\n\n---POST---\nThird"
        generator = RecordingGenerator(reply)

        posts = ContentAgent(generator, ENGLISH_AGENTS).run("Talk to remote workers.", BRAND)

        self.assertEqual(posts, ["First post #coffee", "Second post", "Third"])
        message = generator.requests[0]["current_message"]
        self.assertIn("MARKETING STRATEGY:\nTalk to remote workers.", message)
        self.assertIn(f"BRAND KNOWLEDGE BASE:\n{BRAND}", message)

    def test_both_inputs_are_validated(self):
        agent = ContentAgent(RecordingGenerator(), ENGLISH_AGENTS)

        with self.assertRaises(InvalidConfig):
            agent.run("short", BRAND)
        with self.assertRaises(InvalidConfig):
            agent.run("Talk to remote workers.", "          ")


class TestSplitPosts(unittest.TestCase):
    def test_text_without_separator_is_one_post(self):
        self.assertEqual(split_posts("Just one post"), ["Just one post"])

    def test_only_separators_returns_original_text(self):
        self.assertEqual(split_posts("---POST--- ---POST---"), ["---POST--- ---POST---"])


class TestAgentPrompts(TempContainerMixin, unittest.TestCase):
    def test_languages(self):
        self.assertIs(agent_prompts_for("pl"), POLISH_AGENTS)
        with self.assertRaises(InvalidConfig):
            agent_prompts_for("de")

    def test_container_agents_follow_prompt_language(self):
        generator = RecordingGenerator("Strategia")
        container = make_container(self.tmp, generator=generator, prompt_language="pl")

        container.strategy_agent.run(BRAND)

        self.assertEqual(generator.requests[0]["system_prompt"], POLISH_AGENTS.strategy_system_prompt)


if __name__ == "__main__":
    unittest.main()
