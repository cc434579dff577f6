import unittest

from codegpt_chat.provider import CompletionClient, create_provider
from codegpt_chat.providers.anthropic_provider import AnthropicProvider
from codegpt_chat.providers.openai_provider import OpenAIProvider


class CreateProviderTests(unittest.TestCase):
    def test_creates_anthropic_by_default_name(self) -> None:
        provider = create_provider(" Anthropic ", "test-key")
        self.assertIsInstance(provider, AnthropicProvider)
        self.assertIsInstance(provider, CompletionClient)

    def test_creates_openai(self) -> None:
        provider = create_provider("openai", "test-key", model="gpt-test")
        self.assertIsInstance(provider, OpenAIProvider)

    def test_unknown_provider_raises(self) -> None:
        with self.assertRaises(ValueError):
            create_provider("llama", "test-key")


if __name__ == "__main__":
    unittest.main()
