from a2a_chat.runtime.models import AgentCard
from a2a_chat.runtime.errors import ErrorCode, ProtocolClientError
from a2a_chat.runtime.protocol import Artifact, StatusUpdate, TaskResponse, TextPart
from a2a_chat.runtime.session import SessionContext, SessionLoop, is_exit_command


def _inputs(*lines):
    it = iter(lines)

    def _prompt(_text):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    return _prompt


def _loop(h, *lines, streaming=False):
    return SessionLoop(controller=h.controller, client=h.client, console=h.console, streaming=streaming, prompt=_inputs(*lines))


def _ok_response():
    return TaskResponse(artifacts=[Artifact(parts=[TextPart("pong")], append=False, last_chunk=True)])


def test_prompt_then_turn(harness):
    h = harness(response=_ok_response())
    loop = _loop(h, "ping", "", "/exit")
    loop.run()
    assert len(h.client.requests) == 1
    req = h.client.requests[0]
    assert req.prompt == "ping"
    assert req.attachment is None
    assert req.session_id == loop.context.session_id
    assert "Agent> pong\n" in h.console.text


def test_blank_prompt_warns(harness):
    h = harness()
    _loop(h, "   ", "/quit").run()
    assert "[warn] Please enter a prompt." in h.console.text
    assert h.client.requests == []


def test_attachment_is_read(harness, tmp_path):
    f = tmp_path / "notes.txt"
    f.write_bytes(b"abc")
    h = harness(response=_ok_response())
    _loop(h, "summarize", f'"{f}"', "/q").run()
    att = h.client.requests[0].attachment
    assert att.name == "notes.txt"
    assert att.content == b"abc"


def test_unreadable_attachment_skips_turn(harness, tmp_path):
    h = harness(response=_ok_response())
    _loop(h, "summarize", str(tmp_path / "missing.txt"), "/exit").run()
    assert h.client.requests == []
    assert "[error] Cannot read file" in h.console.text


def test_reset_changes_session(harness):
    h = harness(response=_ok_response())
    ctx = SessionContext()
    before = ctx.session_id
    loop = SessionLoop(
        controller=h.controller, client=h.client, console=h.console, streaming=False, prompt=_inputs("a", "", "/reset", "b", "", "/exit"), context=ctx
    )
    loop.run()
    first, second = h.client.requests
    assert first.session_id == before
    assert second.session_id == ctx.session_id != before
    assert "[warn] Chat history reset." in h.console.text


def test_abort_during_turn_ends_session(harness):
    h = harness(events=[StatusUpdate(message="working"), KeyboardInterrupt()])
    _loop(h, "one", "", "two", "", streaming=True).run()
    assert len(h.client.requests) == 1


def test_failed_turn_keeps_session_going(harness):
    h = harness(error=ProtocolClientError("down", code=ErrorCode.NETWORK_ERROR))
    _loop(h, "one", "", "two", "", "/exit").run()
    assert len(h.client.requests) == 2
    assert h.console.text.count("[error] down") == 2


def test_eof_ends_session(harness):
    h = harness()
    _loop(h).run()
    assert h.client.requests == []


def test_agent_command_prints_card(harness):
    h = harness(card=AgentCard(name="Echo", url="http://echo", version="2"))
    _loop(h, "/agent", "/exit").run()
    assert "Echo v2" in h.console.text
    assert "Streaming: no" in h.console.text


def test_agent_command_without_card(harness):
    h = harness(card=None)
    _loop(h, "/agent", "/exit").run()
    assert "[error] No agents found." in h.console.text


def test_registry_command(harness):
    h = harness(registry=[AgentCard(name="A", url="http://a"), AgentCard(name="B", url="http://b")])
    _loop(h, "/agents", "/exit").run()
    assert "A\n" in h.console.text and "B\n" in h.console.text


def test_registry_error_is_reported(harness):
    h = harness(error=ProtocolClientError("registry down", code=ErrorCode.SERVER_ERROR))
    _loop(h, "/registry", "/exit").run()
    assert "[error] registry down" in h.console.text


def test_unknown_slash_text_is_sent_as_prompt(harness):
    h = harness(response=_ok_response())
    _loop(h, "/summarize this", "", "/exit").run()
    assert h.client.requests[0].prompt == "/summarize this"


def test_exit_commands():
    for cmd in ["/exit", "/quit", "/q", "/x", "/xit"]:
        assert is_exit_command(cmd)
    assert not is_exit_command("/agent")
