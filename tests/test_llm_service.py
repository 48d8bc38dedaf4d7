# tests/test_llm_service.py
import unittest
from unittest.mock import MagicMock, patch

from services.llm_factory import LLMFactory, LLMProvider
from services.llm_service import (
    Capability,
    LLMGenerationError,
    OpenAIGenerationClient,
    check_availability,
    env_flag,
    generate_response,
)


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestGenerateResponse(unittest.TestCase):

    def test_returns_content_with_system_prompt(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("Answer.")

        self.assertEqual(generate_response(client, "Q?", model="m", system_prompt="Be brief."), "Answer.")

        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "Be brief."})
        self.assertEqual(kwargs["messages"][1]["content"], "Q?")

    def test_empty_content_raises(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("")

        with self.assertRaises(LLMGenerationError):
            generate_response(client, "Q?")

    def test_api_error_is_wrapped(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("connection reset")

        with self.assertRaises(LLMGenerationError):
            generate_response(client, "Q?")


class TestOpenAIGenerationClient(unittest.TestCase):

    def test_capabilities(self):
        full = OpenAIGenerationClient(MagicMock(), model="m")
        basic = OpenAIGenerationClient(MagicMock(), model="m", enable_reasoning=False)

        self.assertTrue(full.has(Capability.PROMPT))
        self.assertFalse(full.has(Capability.COUNT_TOKENS))
        self.assertFalse(basic.has(Capability.PROMPT))

    def test_prompt_disabled_raises(self):
        client = OpenAIGenerationClient(MagicMock(), model="m", enable_reasoning=False)
        with self.assertRaises(LLMGenerationError):
            client.prompt("Suggest directions.")

    @patch("services.llm_service.generate_response")
    def test_summarize_uses_length_hint(self, mock_generate):
        mock_generate.return_value = "- point"
        client = OpenAIGenerationClient(MagicMock(), model="m", summary_length="short")

        client.summarize("Abstract text.")

        self.assertIn("3 bullet points", mock_generate.call_args.kwargs["system_prompt"])

    def test_unknown_summary_length_defaults_to_medium(self):
        client = OpenAIGenerationClient(MagicMock(), model="m", summary_length="epic")
        self.assertEqual(client.summary_length, "medium")


class TestFactory(unittest.TestCase):

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            LLMFactory.get_client("carrier-pigeon")

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_openai_key(self):
        with self.assertRaises(ValueError):
            LLMFactory.get_client(LLMProvider.OPENAI)

    @patch.dict("os.environ", {"ENABLE_REASONING": "false", "SUMMARY_LENGTH": "long"}, clear=True)
    @patch.object(LLMFactory, "get_client")
    def test_create_generation_client_reads_env(self, mock_get_client):
        client = LLMFactory.create_generation_client(provider=LLMProvider.LOCAL)

        mock_get_client.assert_called_once_with(LLMProvider.LOCAL)
        self.assertEqual(client.model, "llama3")
        self.assertEqual(client.summary_length, "long")
        self.assertFalse(client.has(Capability.PROMPT))


def test_check_availability(make_client):
    report = check_availability(make_client(capabilities=Capability.SUMMARIZE | Capability.WRITE))

    assert report["available"] is True
    assert report["language_model"] is False
    assert check_availability(None)["available"] is False


@patch.dict("os.environ", {"FLAG_ON": "yes", "FLAG_OFF": "0"}, clear=True)
def test_env_flag():
    assert env_flag("FLAG_ON", False) is True
    assert env_flag("FLAG_OFF", True) is False
    assert env_flag("FLAG_MISSING", True) is True
