"""
Tests for the Agent turn orchestrator.

litellm is mocked throughout; each completion call returns an async stream of
chunks shaped like litellm's streaming responses.
"""
import types
import pytest
from unittest.mock import patch, AsyncMock
from pydantic import BaseModel
from slackwire.models.agent import (
    Agent,
    STATUS_INSTRUCTION,
    TurnState,
    UpdateType,
    to_completion_messages,
    with_status_instruction,
)
from slackwire.models.message import Message, TextPart, ToolCallPart, ToolResultPart
from slackwire.tools.registry import Tool, ToolFailure, ToolRegistry

def chunk(content=None, tool_calls=None):
    delta = types.SimpleNamespace(content=content, tool_calls=tool_calls)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(delta=delta)])

def tool_call_delta(index, id=None, name=None, arguments=None):
    function = types.SimpleNamespace(name=name, arguments=arguments)
    return types.SimpleNamespace(index=index, id=id, function=function)

async def stream(*chunks):
    for c in chunks:
        yield c

class EchoInput(BaseModel):
    text: str

@pytest.fixture
def echo_tool():
    async def echo(text: str) -> str:
        return f"echo: {text}"
    return Tool(name="echo", description="Echo text back", input_model=EchoInput, implementation=echo)

@pytest.fixture
def registry(echo_tool):
    registry = ToolRegistry()
    registry.register(echo_tool, source="local")
    return registry

@pytest.fixture
def slack_client():
    client = AsyncMock()
    client.assistant_threads_setStatus.return_value = {"ok": True}
    return client

@pytest.fixture
def routed_message():
    return Message(
        role="user",
        parts=[TextPart(text="What's new?")],
        metadata={"platform": "slack", "channel": "C1", "thread_ts": "T1"},
    )

def test_status_instruction_added_to_copy(routed_message):
    """The instruction is appended to a copy of the last message only"""
    earlier = Message.text("assistant", "Hello!")
    messages = [earlier, routed_message]

    result = with_status_instruction(messages, routed_message)

    # one extra trailing part referencing both the channel and the thread
    assert len(result[-1].parts) == len(routed_message.parts) + 1
    instruction = result[-1].parts[-1].text
    assert "C1" in instruction and "T1" in instruction
    assert instruction == STATUS_INSTRUCTION.format(channel="C1", thread_ts="T1")

    # input untouched, earlier messages shared unchanged
    assert len(routed_message.parts) == 1
    assert messages == [earlier, routed_message]
    assert result[0] is earlier
    assert result[-1] is not routed_message

def test_status_instruction_goes_on_trigger_not_later_output(routed_message):
    """Output recorded after the trigger never receives the instruction"""
    reply = Message.text("assistant", "Working on it")
    messages = [routed_message, reply]

    result = with_status_instruction(messages, routed_message)

    assert result[1] is reply
    assert len(reply.parts) == 1
    assert result[0].role == "user"
    assert result[0].parts[-1].text == STATUS_INSTRUCTION.format(channel="C1", thread_ts="T1")
    assert len(routed_message.parts) == 1

    converted = to_completion_messages(result)
    assert "channel=C1 thread_ts=T1" in converted[0]["content"]
    assert "INTERNAL INSTRUCTION" not in converted[1]["content"]

def test_status_instruction_skipped_without_routing():
    message = Message.text("user", "Generate a daily news summary")
    result = with_status_instruction([message], message)
    assert result == [message]
    assert result[0] is message

def test_dangling_tool_calls_are_ignored():
    """Tool calls without results from an interrupted turn are not replayed"""
    messages = [
        Message.text("user", "hi"),
        Message(role="assistant", parts=[
            TextPart(text="Checking"),
            ToolCallPart(tool_call_id="done", tool_name="echo", arguments={"text": "a"}),
            ToolCallPart(tool_call_id="dangling", tool_name="echo", arguments={"text": "b"}),
        ]),
        Message(role="tool", parts=[
            ToolResultPart(tool_call_id="done", tool_name="echo", output="echo: a"),
            ToolResultPart(tool_call_id="orphan", tool_name="echo", output="lost"),
        ]),
        Message(role="assistant", parts=[
            ToolCallPart(tool_call_id="never-finished", tool_name="echo", arguments={}),
        ]),
    ]

    converted = to_completion_messages(messages, "system prompt")

    assert converted[0] == {"role": "system", "content": "system prompt"}
    assert converted[1] == {"role": "user", "content": "hi"}
    assistant = converted[2]
    assert [c["id"] for c in assistant["tool_calls"]] == ["done"]
    assert converted[3]["tool_call_id"] == "done"
    assert len(converted) == 4

@pytest.mark.asyncio
async def test_go_signals_status_and_injects_instruction(registry, slack_client, routed_message):
    agent = Agent(model_name="anthropic/claude-sonnet-4-5", tools=registry, slack_client=slack_client)

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.return_value = stream(chunk("Here "), chunk("you go"))
        result = await agent.go([routed_message], routed_message)

    slack_client.assistant_threads_setStatus.assert_awaited_once_with(
        channel_id="C1", thread_ts="T1", status="is typing..."
    )
    kwargs = mock_acompletion.call_args.kwargs
    assert kwargs["model"] == "anthropic/claude-sonnet-4-5"
    assert kwargs["stream"] is True
    assert kwargs["tools"] == registry.definitions()
    last_user = kwargs["messages"][-1]
    assert last_user["role"] == "user"
    assert "channel=C1 thread_ts=T1" in last_user["content"]

    assert result.state == TurnState.COMPLETED
    assert result.ok
    assert result.content == "Here you go"
    assert len(result.new_messages) == 1
    # caller's message was not modified
    assert len(routed_message.parts) == 1

@pytest.mark.asyncio
async def test_go_runs_tool_rounds(registry):
    """A tool call is executed and its result fed back before the final answer"""
    agent = Agent(tools=registry)
    first = stream(
        chunk(tool_calls=[tool_call_delta(0, id="call_1", name="echo", arguments='{"te')]),
        chunk(tool_calls=[tool_call_delta(0, arguments='xt": "ping"}')]),
    )
    second = stream(chunk("The tool said echo: ping"))

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.side_effect = [first, second]
        result = await agent.go([Message.text("user", "Use echo")])

    assert mock_acompletion.await_count == 2
    assistant_call, tool_message, final = result.new_messages
    assert assistant_call.tool_calls[0].arguments == {"text": "ping"}
    assert tool_message.role == "tool"
    assert tool_message.tool_results[0].output == "echo: ping"
    assert tool_message.tool_results[0].is_error is False
    assert final.content == "The tool said echo: ping"

    followup = mock_acompletion.call_args_list[1].kwargs["messages"]
    assert followup[-2]["tool_calls"][0]["id"] == "call_1"
    assert followup[-1] == {"role": "tool", "tool_call_id": "call_1", "name": "echo", "content": "echo: ping"}

@pytest.mark.asyncio
async def test_tool_failures_are_returned_to_model(registry):
    """Unknown tools and bad arguments become error results, not exceptions"""
    agent = Agent(tools=registry)
    first = stream(chunk(tool_calls=[
        tool_call_delta(0, id="call_1", name="missing_tool", arguments="{}"),
        tool_call_delta(1, id="call_2", name="echo", arguments="{not json"),
        tool_call_delta(2, id="call_3", name="echo", arguments='{"wrong": 1}'),
    ]))
    second = stream(chunk("Sorry, that failed"))

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.side_effect = [first, second]
        result = await agent.go([Message.text("user", "try")])

    assert result.ok
    results = result.new_messages[1].tool_results
    assert [r.is_error for r in results] == [True, True, True]
    assert "Unknown tool" in results[0].output
    assert "Invalid JSON" in results[1].output
    assert "Invalid arguments" in results[2].output

@pytest.mark.asyncio
async def test_generation_error_fails_turn(registry, slack_client, routed_message):
    agent = Agent(tools=registry, slack_client=slack_client)

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.side_effect = Exception("model overloaded")
        result = await agent.go([routed_message])

    assert result.state == TurnState.FAILED
    assert result.error == "model overloaded"
    assert result.new_messages == []

@pytest.mark.asyncio
async def test_status_failure_does_not_fail_turn(registry, slack_client, routed_message):
    slack_client.assistant_threads_setStatus.side_effect = Exception("not_allowed")
    agent = Agent(tools=registry, slack_client=slack_client)

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.return_value = stream(chunk("ok"))
        result = await agent.go([routed_message])

    assert result.ok

@pytest.mark.asyncio
async def test_max_tool_rounds(registry):
    agent = Agent(tools=registry, max_tool_rounds=1)
    rounds = [
        stream(chunk(tool_calls=[tool_call_delta(0, id=f"call_{i}", name="echo", arguments='{"text": "x"}')]))
        for i in range(3)
    ]

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.side_effect = rounds
        result = await agent.go([Message.text("user", "loop")])

    assert mock_acompletion.await_count == 2
    assert result.ok

@pytest.mark.asyncio
async def test_go_stream_updates(registry):
    agent = Agent(tools=registry)

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.return_value = stream(chunk("a"), chunk("b"))
        updates = [u async for u in agent.go_stream([Message.text("user", "hi")])]

    assert [u.type for u in updates] == [
        UpdateType.CONTENT_CHUNK,
        UpdateType.CONTENT_CHUNK,
        UpdateType.ASSISTANT_MESSAGE,
        UpdateType.COMPLETE,
    ]
    assert updates[-1].data == "ab"

@pytest.mark.asyncio
async def test_tool_failure_value_passes_through():
    async def failing() -> str:
        return ToolFailure("Error posting message: channel_not_found")

    class NoInput(BaseModel):
        pass

    registry = ToolRegistry()
    registry.register(Tool(name="post", description="post", input_model=NoInput, implementation=failing))
    agent = Agent(tools=registry)
    first = stream(chunk(tool_calls=[tool_call_delta(0, id="call_1", name="post", arguments="")]))

    with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
        mock_acompletion.side_effect = [first, stream(chunk("done"))]
        result = await agent.go([Message.text("user", "post it")])

    tool_result = result.new_messages[1].tool_results[0]
    assert tool_result.is_error is True
    assert tool_result.output == "Error posting message: channel_not_found"
