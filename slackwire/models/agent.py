"""Agent: runs one turn of a session through the model with tools."""
import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence
import litellm
import weave
from slackwire.config import DEFAULT_MODEL
from slackwire.models.message import Message, TextPart, ToolCallPart, ToolResultPart
from slackwire.tools.registry import ToolFailure, ToolRegistry
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_INSTRUCTION = (
    "*INTERNAL INSTRUCTION*: Clear the status of this thread after you finish: "
    "channel={channel} thread_ts={thread_ts}"
)

DEFAULT_PURPOSE = """You are a helpful Slack bot assistant.

## Your Capabilities

You have access to Slack tools for reading messages, sending messages, reacting to messages, setting thread status, and posting to channels. You can also look up the current date and search the web.

## Special Feature: Daily News Summaries

This agent is configured to automatically post daily news summaries. Here's how it works:

1. **Webhook Trigger**: The agent has a /daily-news webhook endpoint that gets triggered daily by a scheduled job
2. **Your Job**: When you receive news summary requests, you should:
   - Research the latest news using the web_search tool, checking today's date with get_current_date
   - Create an engaging, well-formatted summary
   - Use emojis and Slack formatting to make it readable
   - Use the post_to_slack_channel tool to post the summary to the specified channel

## How to Interact

Users can @mention you in channels or send you direct messages. Reply with the slack_send_message tool in the channel and thread the message came from. Always be helpful, concise, and use Slack's rich formatting when appropriate."""

class TurnState(str, Enum):
    IDLE = "idle"
    STATUS_SIGNALED = "status_signaled"
    GENERATING = "generating"
    TOOL_INVOKED = "tool_invoked"
    COMPLETED = "completed"
    FAILED = "failed"

class UpdateType(str, Enum):
    CONTENT_CHUNK = "content_chunk"
    ASSISTANT_MESSAGE = "assistant_message"
    TOOL_MESSAGE = "tool_message"
    COMPLETE = "complete"
    ERROR = "error"

@dataclass
class StreamUpdate:
    """One streamed event of a turn."""
    type: UpdateType
    data: Any = None

@dataclass
class TurnResult:
    state: TurnState
    new_messages: List[Message] = field(default_factory=list)
    content: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == TurnState.COMPLETED

def with_status_instruction(messages: Sequence[Message], trigger: Optional[Message]) -> List[Message]:
    """Return messages with a status-clearing instruction added to the trigger.

    The instruction is only added when the trigger carries a channel and a
    thread. It goes on the trigger's entry in the sequence, or on the last
    message when the trigger is not part of it. The input sequence and its
    messages are never modified; only that one message is replaced by an
    extended copy.
    """
    routing = trigger.routing() if trigger else None
    if not routing or not messages:
        return list(messages)
    instruction = TextPart(text=STATUS_INSTRUCTION.format(**routing))
    index = next(
        (i for i in range(len(messages) - 1, -1, -1) if messages[i].id == trigger.id),
        len(messages) - 1,
    )
    result = list(messages)
    result[index] = messages[index].with_parts(instruction)
    return result

def to_completion_messages(messages: Sequence[Message], system_prompt: Optional[str] = None) -> List[Dict[str, Any]]:
    """Convert session messages to chat-completion messages.

    Tool calls without a matching result (and results without a call) are
    left out, so an interrupted earlier turn is not replayed.
    """
    call_ids = {c.tool_call_id for m in messages for c in m.tool_calls}
    result_ids = {r.tool_call_id for m in messages for r in m.tool_results}

    converted: List[Dict[str, Any]] = []
    if system_prompt:
        converted.append({"role": "system", "content": system_prompt})

    for message in messages:
        if message.role == "user":
            if message.content:
                converted.append({"role": "user", "content": message.content})
        elif message.role == "assistant":
            calls = [c for c in message.tool_calls if c.tool_call_id in result_ids]
            if not message.content and not calls:
                continue
            entry: Dict[str, Any] = {"role": "assistant", "content": message.content or None}
            if calls:
                entry["tool_calls"] = [_completion_tool_call(c) for c in calls]
            converted.append(entry)
        elif message.role == "tool":
            for result in message.tool_results:
                if result.tool_call_id in call_ids:
                    converted.append(_completion_tool_result(result))
    return converted

def _completion_tool_call(call: ToolCallPart) -> Dict[str, Any]:
    return {
        "id": call.tool_call_id,
        "type": "function",
        "function": {"name": call.tool_name, "arguments": json.dumps(call.arguments)},
    }

def _completion_tool_result(result: ToolResultPart) -> Dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": result.tool_call_id,
        "name": result.tool_name,
        "content": result.output,
    }

def _parse_arguments(raw: str) -> Optional[Dict[str, Any]]:
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None

class Agent:
    """Turn orchestrator.

    Signals a "working" status in Slack, runs the model with the tool set,
    executes requested tools and streams the results. The number of tool
    rounds is unbounded unless max_tool_rounds is set.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        purpose: str = DEFAULT_PURPOSE,
        tools: Optional[ToolRegistry] = None,
        slack_client: Any = None,
        temperature: float = 0.7,
        max_tool_rounds: Optional[int] = None,
        status_text: str = "is typing...",
        name: str = "slackwire",
    ):
        self.name = name
        self.model_name = model_name
        self.purpose = purpose
        self.tools = tools if tools is not None else ToolRegistry()
        self.slack_client = slack_client
        self.temperature = temperature
        self.max_tool_rounds = max_tool_rounds
        self.status_text = status_text

    def _transition(self, state: TurnState) -> None:
        logger.debug(f"Agent '{self.name}' turn state -> {state.value}")

    async def _signal_status(self, routing: Dict[str, str]) -> bool:
        if self.slack_client is None:
            return False
        try:
            await self.slack_client.assistant_threads_setStatus(
                channel_id=routing["channel"],
                thread_ts=routing["thread_ts"],
                status=self.status_text,
            )
            return True
        except Exception as e:
            logger.warning(f"Failed to set status in {routing['channel']}/{routing['thread_ts']}: {e}")
            return False

    async def _run_tool(self, call: ToolCallPart, malformed_arguments: Optional[str] = None) -> ToolResultPart:
        if malformed_arguments is not None:
            output = ToolFailure(f"Invalid JSON arguments for {call.tool_name}: {malformed_arguments}")
        else:
            logger.info(f"Executing tool {call.tool_name}")
            output = await self.tools.execute(call.tool_name, call.arguments)
        return ToolResultPart(
            tool_call_id=call.tool_call_id,
            tool_name=call.tool_name,
            output=str(output),
            is_error=isinstance(output, ToolFailure),
        )

    async def go_stream(
        self,
        messages: Sequence[Message],
        trigger: Optional[Message] = None,
    ) -> AsyncGenerator[StreamUpdate, None]:
        """Run a turn, yielding updates as they happen.

        Args:
            messages: The session's messages; never modified
            trigger: The message that started this turn. Defaults to the last
                user message.

        Yields:
            StreamUpdate objects; the last one is COMPLETE or ERROR
        """
        if trigger is None:
            trigger = next((m for m in reversed(messages) if m.role == "user"), None)

        self._transition(TurnState.IDLE)
        routing = trigger.routing() if trigger else None
        if routing and await self._signal_status(routing):
            self._transition(TurnState.STATUS_SIGNALED)

        conversation = to_completion_messages(with_status_instruction(messages, trigger), self.purpose)
        definitions = self.tools.definitions()
        rounds = 0

        while True:
            self._transition(TurnState.GENERATING)
            content_chunks: List[str] = []
            buffers: Dict[int, Dict[str, str]] = {}
            try:
                completion_kwargs = {
                    "model": self.model_name,
                    "messages": conversation,
                    "temperature": self.temperature,
                    "stream": True,
                }
                if definitions:
                    completion_kwargs["tools"] = definitions
                stream = await litellm.acompletion(**completion_kwargs)
                async for chunk in stream:
                    if not getattr(chunk, "choices", None):
                        continue
                    delta = chunk.choices[0].delta
                    if getattr(delta, "content", None):
                        content_chunks.append(delta.content)
                        yield StreamUpdate(UpdateType.CONTENT_CHUNK, delta.content)
                    for tool_call in getattr(delta, "tool_calls", None) or []:
                        buffer = buffers.setdefault(tool_call.index or 0, {"id": "", "name": "", "arguments": ""})
                        if tool_call.id:
                            buffer["id"] = tool_call.id
                        function = getattr(tool_call, "function", None)
                        if function is not None:
                            if function.name:
                                buffer["name"] = function.name
                            if function.arguments:
                                buffer["arguments"] += function.arguments
            except Exception as e:
                self._transition(TurnState.FAILED)
                logger.error(f"Generation failed for agent '{self.name}': {e}")
                yield StreamUpdate(UpdateType.ERROR, str(e))
                return

            content = "".join(content_chunks)
            calls: List[ToolCallPart] = []
            malformed: Dict[str, str] = {}
            for index in sorted(buffers):
                buffer = buffers[index]
                call_id = buffer["id"] or f"call_{uuid.uuid4().hex[:12]}"
                arguments = _parse_arguments(buffer["arguments"])
                if arguments is None:
                    malformed[call_id] = buffer["arguments"]
                calls.append(ToolCallPart(tool_call_id=call_id, tool_name=buffer["name"], arguments=arguments or {}))

            parts: List[Any] = [TextPart(text=content)] if content else []
            parts.extend(calls)
            assistant = Message(role="assistant", parts=parts)
            yield StreamUpdate(UpdateType.ASSISTANT_MESSAGE, assistant)

            if not calls:
                self._transition(TurnState.COMPLETED)
                yield StreamUpdate(UpdateType.COMPLETE, content)
                return

            if self.max_tool_rounds is not None and rounds >= self.max_tool_rounds:
                logger.warning(f"Agent '{self.name}' reached max_tool_rounds={self.max_tool_rounds}")
                self._transition(TurnState.COMPLETED)
                yield StreamUpdate(UpdateType.COMPLETE, content)
                return

            rounds += 1
            self._transition(TurnState.TOOL_INVOKED)
            results = [await self._run_tool(call, malformed.get(call.tool_call_id)) for call in calls]
            tool_message = Message(role="tool", parts=results)
            yield StreamUpdate(UpdateType.TOOL_MESSAGE, tool_message)

            conversation.append({
                "role": "assistant",
                "content": content or None,
                "tool_calls": [_completion_tool_call(c) for c in calls],
            })
            conversation.extend(_completion_tool_result(r) for r in results)

    @weave.op()
    async def go(self, messages: Sequence[Message], trigger: Optional[Message] = None) -> TurnResult:
        """Run a turn to completion.

        Returns:
            TurnResult with the new assistant and tool messages; a generation
            error gives state FAILED rather than an exception
        """
        result = TurnResult(state=TurnState.COMPLETED)
        async for update in self.go_stream(messages, trigger):
            if update.type == UpdateType.ASSISTANT_MESSAGE:
                result.new_messages.append(update.data)
                if update.data.content:
                    result.content = update.data.content
            elif update.type == UpdateType.TOOL_MESSAGE:
                result.new_messages.append(update.data)
            elif update.type == UpdateType.ERROR:
                result.state = TurnState.FAILED
                result.error = update.data
        return result
