"""End-to-end tests of the MCP server wiring over an in-memory transport."""

import io

import pytest
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session
from pydantic import AnyUrl

from mcp_bridge.chat import ConsoleReporter, build_arg_parser, main, repl
from mcp_bridge.errors import ErrorKind, TransportFailure
from mcp_bridge.loop import AgentLoop
from mcp_bridge.server import create_server, weather
from mcp_bridge.session import ModelSession
from mcp_bridge.tool_server import MCPToolServer
from mcp_bridge.types import PrimitiveType, ToolCallRequest, ToolInvocationResult

from conftest import ScriptedLLM, completion

pytestmark = pytest.mark.anyio


@pytest.fixture(autouse=True)
def no_latency(monkeypatch):
    monkeypatch.setattr(weather, "SIMULATED_LATENCY", 0)


@pytest.fixture
async def client_session():
    async with create_connected_server_and_client_session(create_server()) as session:
        yield session


async def test_tools_are_listed_with_schemas(client_session):
    server = MCPToolServer.from_session(client_session)

    tools = await server.list_tools()

    assert [t.name for t in tools] == ["calculator", "get_weather"]
    calculator = tools[0]
    assert calculator.input_schema.properties["a"].type is PrimitiveType.NUMBER
    assert calculator.input_schema.required_fields == ["operation", "a", "b"]
    assert calculator.input_schema.properties["operation"].enum == (
        "add",
        "subtract",
        "multiply",
        "divide",
    )


async def test_successful_call(client_session):
    server = MCPToolServer.from_session(client_session)

    result = await server.invoke_tool("calculator", {"operation": "multiply", "a": 25, "b": 4})

    assert result == ToolInvocationResult.ok("25 multiply 4 = 100")


@pytest.mark.parametrize(
    "name, arguments, kind, message",
    [
        ("calculator", {"operation": "divide", "a": 1, "b": 0}, ErrorKind.DOMAIN_ERROR, "Cannot divide by zero"),
        ("calculator", {"operation": "add", "a": "x", "b": 2}, ErrorKind.INVALID_INPUT, "a: expected number, got str"),
        ("nonexistent_tool", {}, ErrorKind.NOT_FOUND, "Unknown tool: nonexistent_tool"),
    ],
)
async def test_failures_keep_their_kind_across_the_wire(client_session, name, arguments, kind, message):
    server = MCPToolServer.from_session(client_session)

    result = await server.invoke_tool(name, arguments)

    assert result.error_kind is kind
    assert result.message == message


async def test_raw_error_result_is_flagged(client_session):
    result = await client_session.call_tool("calculator", {"operation": "divide", "a": 1, "b": 0})

    assert result.isError is True
    assert result.content[0].text == "DomainError: Cannot divide by zero"


async def test_resources(client_session):
    listing = await client_session.list_resources()
    assert [str(r.uri) for r in listing.resources] == [
        "notes://all",
        "notes://1",
        "notes://2",
        "notes://3",
    ]

    contents = await client_session.read_resource(AnyUrl("notes://2"))
    assert contents.contents[0].text.startswith("MCP Transport Types")


async def test_unknown_resource_is_a_protocol_error(client_session):
    with pytest.raises(McpError, match="Note with ID 42 not found"):
        await client_session.read_resource(AnyUrl("notes://42"))


async def test_prompts(client_session):
    listing = await client_session.list_prompts()
    review = next(p for p in listing.prompts if p.name == "code-review")
    assert {(a.name, a.required) for a in review.arguments} == {("language", True), ("focus", False)}

    prompt = await client_session.get_prompt("explain-concept", {"concept": "stdio", "level": "intermediate"})
    assert prompt.messages[0].role == "user"
    assert prompt.messages[0].content.text.startswith('Explain "stdio" to a developer')


async def test_unknown_prompt_is_a_protocol_error(client_session):
    with pytest.raises(McpError, match="Unknown prompt: nope"):
        await client_session.get_prompt("nope", {})


async def test_unconnected_server_is_a_transport_failure():
    server = MCPToolServer("does-not-matter")

    with pytest.raises(TransportFailure, match="not connected"):
        await server.list_tools()


class TestChatCli:
    def test_arg_parser(self):
        args = build_arg_parser().parse_args(
            ["--provider", "openai", "--max-rounds", "3", "--server", "node index.js"]
        )

        assert args.provider == "openai"
        assert args.max_rounds == 3
        assert args.server_command == "node index.js"
        assert args.model is None

    def test_missing_key_exits_with_error(self, monkeypatch, capsys):
        monkeypatch.setattr("mcp_bridge.config.load_dotenv", lambda: None)
        monkeypatch.setattr("mcp_bridge.providers.load_dotenv", lambda: None)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert main(["--provider", "anthropic"]) == 1
        assert "ANTHROPIC_API_KEY is not set" in capsys.readouterr().err

    def test_reporter_output(self):
        out = io.StringIO()
        reporter = ConsoleReporter(out)
        call = ToolCallRequest("call_1", "calculator", {"operation": "add", "a": 1, "b": 2})

        reporter.tool_call(call)
        reporter.tool_result(call, ToolInvocationResult.ok("1 add 2 = 3"))
        reporter.tool_result(call, ToolInvocationResult.failure(ErrorKind.DOMAIN_ERROR, "nope"))

        lines = out.getvalue().strip().splitlines()
        assert lines == [
            'Calling tool: calculator({"operation": "add", "a": 1, "b": 2})',
            "   Result: 1 add 2 = 3",
            "   Error: DomainError: nope",
        ]


def scripted_input(*lines):
    pending = list(lines)

    def read_line(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)

    read_line.pending = pending
    return read_line


class TestRepl:
    """The interactive loop over a live in-memory MCP server."""

    async def start(self, client_session, replies, out, **kwargs):
        reporter = ConsoleReporter(out)
        llm = ScriptedLLM(replies)
        loop = await AgentLoop.create(
            ModelSession(llm),
            MCPToolServer.from_session(client_session),
            on_tool_call=reporter.tool_call,
            on_tool_result=reporter.tool_result,
            **kwargs,
        )
        return llm, loop

    async def test_tool_turn_then_exit(self, client_session):
        out = io.StringIO()
        llm, loop = await self.start(
            client_session,
            [
                completion(tool_calls=[("call_1", "calculator", {"operation": "multiply", "a": 25, "b": 4})]),
                completion("25 times 4 is 100."),
            ],
            out,
        )
        read_line = scripted_input("", "   ", "What is 25 times 4?", "exit", "never read")

        await repl(loop, read_line=read_line, out=out)

        output = out.getvalue()
        assert "Available tools: calculator, get_weather" in output
        assert "   Result: 25 multiply 4 = 100" in output
        assert "Assistant: 25 times 4 is 100." in output
        assert output.rstrip().endswith("Goodbye!")
        assert len(llm.requests) == 2
        assert read_line.pending == ["never read"]

    async def test_quit_is_case_insensitive(self, client_session):
        out = io.StringIO()
        llm, loop = await self.start(client_session, [], out)
        read_line = scripted_input("QUIT", "hello")

        await repl(loop, read_line=read_line, out=out)

        assert llm.requests == []
        assert read_line.pending == ["hello"]

    async def test_eof_ends_session(self, client_session):
        out = io.StringIO()
        llm, loop = await self.start(client_session, [], out)

        await repl(loop, read_line=scripted_input(), out=out)

        assert llm.requests == []
        assert "Goodbye!" in out.getvalue()

    async def test_failed_turn_is_reported_and_chat_continues(self, client_session):
        out = io.StringIO()
        call = ("call_1", "calculator", {"operation": "add", "a": 1, "b": 1})
        llm, loop = await self.start(
            client_session,
            [
                completion(tool_calls=[call]),
                completion(tool_calls=[call]),
                completion("Still here."),
            ],
            out,
            max_rounds=1,
        )

        await repl(loop, read_line=scripted_input("keep adding", "are you there?"), out=out)

        output = out.getvalue()
        assert "Error: Model requested tools for more than 1 rounds in one turn" in output
        assert "Assistant: Still here." in output
        assert llm.requests[2]["messages"] == [{"role": "user", "content": "are you there?"}]
