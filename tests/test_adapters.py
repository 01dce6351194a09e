"""Test suite for parameter normalization and provider request adapters."""

import pytest
from openai import AsyncOpenAI

from mcp_bridge.adapters import AnthropicRequestAdapter, GeminiRequestAdapter, OpenAIRequestAdapter
from mcp_bridge.client import OpenAILLM
from mcp_bridge.params import normalize_params
from mcp_bridge.providers import Provider
from mcp_bridge.types import ToolCallResult

from conftest import anthropic_message, completion


class TestParamsNormalization:
    """Test parameter normalization functionality."""

    def test_basic_params_normalization(self):
        """Test basic parameter normalization with core parameters."""
        params = normalize_params(
            {
                "temperature": 0.7,
                "max_tokens": 100,
                "top_p": 0.9,
                "frequency_penalty": 0.5,
            }
        )

        assert params["temperature"] == 0.7
        assert params["max_tokens"] == 100
        assert params["top_p"] == 0.9
        assert params["extra"]["frequency_penalty"] == 0.5
        assert "frequency_penalty" not in params

    def test_extra_params_handling(self):
        """Test handling of extra parameters."""
        params = normalize_params(
            {"temperature": 0.7, "reasoning_effort": "minimal", "verbosity": "low"}
        )

        assert params["temperature"] == 0.7
        assert params["extra"]["reasoning_effort"] == "minimal"
        assert params["extra"]["verbosity"] == "low"

    def test_none_values_dropped(self):
        """Test None values never reach the provider."""
        params = normalize_params(
            {"temperature": 0.7, "max_tokens": None, "reasoning_effort": "minimal"}
        )

        assert params["temperature"] == 0.7
        assert "max_tokens" not in params
        assert params["extra"]["reasoning_effort"] == "minimal"

    def test_existing_extra_dict_merge(self):
        """Test merging with existing extra dict."""
        params = normalize_params(
            {
                "temperature": 0.7,
                "reasoning_effort": "minimal",
                "extra": {"verbosity": "high", "custom": "value"},
            }
        )

        assert params["extra"] == {
            "reasoning_effort": "minimal",
            "verbosity": "high",
            "custom": "value",
        }

    def test_tool_parameters(self):
        """Test tool-related parameters stay top-level."""
        tools = [{"type": "function", "function": {"name": "test"}}]
        tool_choice = {"type": "function", "function": {"name": "test"}}

        params = normalize_params(
            {"tools": tools, "tool_choice": tool_choice, "parallel_tool_calls": True}
        )

        assert params["tools"] == tools
        assert params["tool_choice"] == tool_choice
        assert params["parallel_tool_calls"] is True

    def test_empty_normalization(self):
        """Test normalization with empty/None input."""
        assert normalize_params({}) == {"extra": {}}
        assert normalize_params(None) == {"extra": {}}

    def test_edge_case_values(self):
        """Zero values and empty collections are kept."""
        params = normalize_params({"temperature": 0.0, "max_tokens": 0, "tools": [], "stop": []})

        assert params["temperature"] == 0.0
        assert params["max_tokens"] == 0
        assert params["tools"] == []
        assert params["stop"] == []

    def test_rejects_non_dict(self):
        with pytest.raises(TypeError):
            normalize_params(["temperature"])
        with pytest.raises(TypeError):
            normalize_params({"extra": "nope"})


class TestOpenAIRequestAdapter:
    """Test OpenAI request adapter functionality."""

    @pytest.fixture
    def adapter(self):
        return OpenAIRequestAdapter()

    def test_to_provider_basic_functionality(self, adapter):
        """Test basic to_provider functionality."""
        messages = [{"role": "user", "content": "Hello"}]
        params = normalize_params({"temperature": 0.7, "max_tokens": 100})

        result = adapter.to_provider(messages, params)

        assert result["messages"] == [{"role": "user", "content": "Hello"}]
        assert result["temperature"] == 0.7
        assert result["max_tokens"] == 100
        assert "extra" not in result

    def test_to_provider_message_conversion(self, adapter):
        """Test message format conversion."""
        messages = [
            {"role": "system", "content": "You are helpful"},
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi!"},
        ]

        result = adapter.to_provider(messages, normalize_params({}))

        assert len(result["messages"]) == 3
        assert result["messages"][0] == {"role": "system", "content": "You are helpful"}

    def test_to_provider_tool_calls(self, adapter):
        """Test tool call message handling."""
        messages = [
            {"role": "user", "content": "Calculate 2+2"},
            {
                "role": "assistant",
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "calc", "arguments": '{"a": 2, "b": 2}'},
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": "4"},
        ]

        result = adapter.to_provider(messages, normalize_params({}))

        assert result["messages"][1]["tool_calls"][0]["id"] == "call_1"
        assert result["messages"][1]["content"] is None
        assert result["messages"][2]["tool_call_id"] == "call_1"

    def test_empty_tools_are_dropped(self, adapter):
        result = adapter.to_provider(
            [{"role": "user", "content": "hi"}], normalize_params({"tools": []})
        )
        assert "tools" not in result

    def test_extras_are_flattened(self, adapter):
        result = adapter.to_provider(
            [{"role": "user", "content": "hi"}],
            normalize_params({"reasoning_effort": "low"}),
        )
        assert result["reasoning_effort"] == "low"

    def test_from_provider_text(self, adapter):
        response = adapter.from_provider(completion("The answer is 4."))

        assert response.content == "The answer is 4."
        assert response.tool_calls is None
        assert not response.has_tool_calls

    def test_from_provider_tool_calls_keep_order(self, adapter):
        raw = completion(
            tool_calls=[
                ("call_1", "calculator", {"operation": "add", "a": 1, "b": 2}),
                ("call_2", "get_weather", {"city": "Paris"}),
            ]
        )

        response = adapter.from_provider(raw)

        assert [(c.id, c.name) for c in response.tool_calls] == [
            ("call_1", "calculator"),
            ("call_2", "get_weather"),
        ]
        assert response.tool_calls[1].arguments == {"city": "Paris"}

    def test_non_object_arguments_become_empty(self, adapter):
        response = adapter.from_provider(completion(tool_calls=[("call_1", "calculator", "[1, 2]")]))
        assert response.tool_calls[0].arguments == {}

    def test_assistant_message_keeps_tool_calls(self, adapter):
        raw = completion(tool_calls=[("call_1", "calculator", {"operation": "add", "a": 1, "b": 2})])

        message = adapter.assistant_message_from(raw)

        assert message["role"] == "assistant"
        assert message["content"] is None
        assert message["tool_calls"][0]["id"] == "call_1"
        assert message["tool_calls"][0]["function"]["name"] == "calculator"

    def test_tool_results_are_one_message_each(self, adapter):
        results = [
            ToolCallResult(id="call_1", name="calculator", content="1 add 2 = 3"),
            ToolCallResult(id="call_2", name="get_weather", content="{}"),
        ]

        messages = adapter.tool_results_messages(results)

        assert messages == [
            {"role": "tool", "tool_call_id": "call_1", "content": "1 add 2 = 3"},
            {"role": "tool", "tool_call_id": "call_2", "content": "{}"},
        ]


class TestAnthropicRequestAdapter:
    """Test Anthropic request adapter functionality."""

    @pytest.fixture
    def adapter(self):
        return AnthropicRequestAdapter()

    def test_system_message_moves_to_top_level(self, adapter):
        messages = [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hello"},
        ]

        result = adapter.to_provider(messages, normalize_params({}))

        assert result["system"] == "Be brief"
        assert result["messages"] == [{"role": "user", "content": "Hello"}]

    def test_no_system_key_without_system_message(self, adapter):
        result = adapter.to_provider([{"role": "user", "content": "Hello"}], normalize_params({}))
        assert "system" not in result

    def test_max_tokens_default_and_stop_sequences(self, adapter):
        result = adapter.to_provider(
            [{"role": "user", "content": "Hello"}], normalize_params({"stop": "END"})
        )

        assert result["max_tokens"] == 4096
        assert result["stop_sequences"] == ["END"]
        assert "stop" not in result

    def test_from_provider_text_and_tool_use(self, adapter):
        raw = anthropic_message(
            "Let me check.", [("toolu_1", "get_weather", {"city": "Tokyo"})]
        )

        response = adapter.from_provider(raw)

        assert response.content == "Let me check."
        assert len(response.tool_calls) == 1
        assert response.tool_calls[0].id == "toolu_1"
        assert response.tool_calls[0].arguments == {"city": "Tokyo"}

    def test_assistant_message_keeps_tool_use_blocks(self, adapter):
        raw = anthropic_message(
            "Checking.", [("toolu_1", "get_weather", {"city": "Tokyo"})]
        )

        message = adapter.assistant_message_from(raw)

        assert message["content"][0] == {"type": "text", "text": "Checking."}
        assert message["content"][1]["type"] == "tool_use"
        assert message["content"][1]["id"] == "toolu_1"

    def test_tool_results_batch_into_one_user_message(self, adapter):
        results = [
            ToolCallResult(id="toolu_1", name="calculator", content="1 add 2 = 3"),
            ToolCallResult(id="toolu_2", name="calculator", content="DomainError: Cannot divide by zero"),
        ]

        messages = adapter.tool_results_messages(results)

        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        assert [block["tool_use_id"] for block in messages[0]["content"]] == ["toolu_1", "toolu_2"]
        assert messages[0]["content"][1]["content"] == "DomainError: Cannot divide by zero"

    def test_failed_results_carry_error_flag(self, adapter):
        results = [
            ToolCallResult(id="toolu_1", name="calculator", content="1 add 2 = 3"),
            ToolCallResult(
                id="toolu_2",
                name="calculator",
                content="DomainError: Cannot divide by zero",
                is_error=True,
            ),
        ]

        ok, failed = adapter.tool_results_messages(results)[0]["content"]

        assert "is_error" not in ok
        assert failed["is_error"] is True


class TestOpenAILLMRequest:
    """The request actually handed to the OpenAI SDK."""

    @pytest.mark.anyio
    async def test_request_arguments(self, monkeypatch):
        client = AsyncOpenAI(api_key="k")
        sent = {}

        async def create(**kwargs):
            sent.update(kwargs)
            return completion("hi")

        monkeypatch.setattr(client.chat.completions, "create", create)
        llm = OpenAILLM.from_client("gpt-4.1-mini", client)

        response = await llm.chat(
            [{"role": "user", "content": "Hello"}],
            params={"temperature": 0.2, "tools": [], "reasoning_effort": "low"},
        )

        assert response.content == "hi"
        assert sent == {
            "model": "gpt-4.1-mini",
            "messages": [{"role": "user", "content": "Hello"}],
            "temperature": 0.2,
            "reasoning_effort": "low",
        }


def test_gemini_adapter_uses_openai_wire_format():
    adapter = GeminiRequestAdapter()

    assert adapter.provider is Provider.GEMINI
    response = adapter.from_provider(completion("hi"))
    assert response.content == "hi"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
