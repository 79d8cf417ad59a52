# tests/test_llm_stack_oracle.py
"""
LLMDecisionOracle with fake backends.

Covers:
- prompt layout (identity, compact state JSON, action menu)
- first flat JSON object in the reply wins
- every failure mode yields `wait`
- OpenAIBackend request shape with a stub client
- backend selection from OracleConfig / environment
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from agent.config import AgentConfig
from contracts.types import Action, AgentType
from fakes.fake_runtime import FakeBackend, make_state
from llm_stack.backend import OpenAIBackend
from llm_stack.config import DEFAULT_OPENAI_MODEL, OracleConfig
from llm_stack.json_utils import extract_first_json_object, load_json_or_none
from llm_stack.oracle import ACTION_MENU, LLMDecisionOracle, build_oracle, build_prompt, parse_action


def make_oracle(backend: FakeBackend) -> LLMDecisionOracle:
    return LLMDecisionOracle(
        backend,
        name="Alice",
        agent_type=AgentType.EXPLORER,
        personality="Bold and curious",
    )


def test_prompt_contains_identity_state_and_menu() -> None:
    state = make_state(health=18, food=15, inventory=[{"name": "bread", "count": 2}])
    prompt = build_prompt("Alice", "explorer", "Bold and curious", state)

    assert prompt.startswith("You are Alice, a Minecraft explorer bot.\nPersonality: Bold and curious\n")
    assert (
        'Current state: {"position":{"x":0,"y":64,"z":0},"health":18,"food":15,'
        '"isNight":false,"inventory":[{"name":"bread","count":2}],"nearbyEntities":[]}'
    ) in prompt
    assert prompt.endswith("Choose ONE action (JSON only):\n" + ACTION_MENU)
    assert len(ACTION_MENU.splitlines()) == 8


def test_reply_with_prose_is_parsed() -> None:
    backend = FakeBackend(reply='I think {"action": "mine", "block": "oak_log"} is best.')
    action = make_oracle(backend).decide(make_state())

    assert action == Action.mine("oak_log")
    assert backend.kwargs == [{"max_tokens": 50, "temperature": 0.7}]


def test_first_object_wins() -> None:
    action = parse_action('{"action":"eat"} or maybe {"action":"flee"}')
    assert action == Action.eat()


def test_object_without_action_key_is_wait() -> None:
    assert parse_action('{"block": "stone"}') == Action.wait()


@pytest.mark.parametrize(
    "reply",
    [
        "",
        "no json here",
        '{"action": "mine", "block": }',
        '{"action": "craft", "item": {"name": "stick"}}',  # nested -> truncated span
    ],
)
def test_unusable_replies_fall_back_to_wait(reply: str) -> None:
    assert make_oracle(FakeBackend(reply=reply)).decide(make_state()) == Action.wait()


def test_backend_error_falls_back_to_wait() -> None:
    backend = FakeBackend(error=RuntimeError("HTTP 429"))
    assert make_oracle(backend).decide(make_state()) == Action.wait()
    assert len(backend.prompts) == 1


def test_unknown_action_tag_passes_through() -> None:
    action = parse_action('{"action": "dance", "style": "floss"}')
    assert action == Action("dance", {"style": "floss"})


def test_json_utils_helpers() -> None:
    assert extract_first_json_object("") is None
    assert extract_first_json_object("a {} b") is None
    assert extract_first_json_object('x {"a":1} y') == '{"a":1}'

    data, err = load_json_or_none("[1]", context="test")
    assert data is None and "expected JSON object" in (err or "")
    data, err = load_json_or_none('{"a": 1}')
    assert data == {"a": 1} and err is None


# ---------------------------------------------------------------------------
# OpenAI backend
# ---------------------------------------------------------------------------


class StubCompletions:
    def __init__(self, content: str) -> None:
        self.content = content
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_openai_backend_request_shape() -> None:
    completions = StubCompletions('  {"action":"wait"}\n')
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    backend = OpenAIBackend(model="gpt-test", client=client)

    text = backend.generate("prompt text", max_tokens=50, temperature=0.7)

    assert text == '{"action":"wait"}'
    assert completions.calls == [
        {
            "model": "gpt-test",
            "messages": [{"role": "user", "content": "prompt text"}],
            "max_tokens": 50,
            "temperature": 0.7,
        }
    ]


def test_openai_backend_handles_empty_content() -> None:
    completions = StubCompletions(None)  # type: ignore[arg-type]
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    backend = OpenAIBackend(client=client)

    assert backend.generate("p", max_tokens=5, temperature=0.0, system_prompt="sys") == ""
    assert completions.calls[0]["messages"][0] == {"role": "system", "content": "sys"}
    assert completions.calls[0]["model"] == DEFAULT_OPENAI_MODEL


# ---------------------------------------------------------------------------
# Config / factory
# ---------------------------------------------------------------------------


def test_oracle_config_from_env() -> None:
    openai_cfg = OracleConfig.from_env({"OPENAI_API_KEY": "sk-test", "CLAWCRAFT_OPENAI_MODEL": "gpt-x"})
    assert openai_cfg.provider == "openai"
    assert openai_cfg.model == "gpt-x"

    local_cfg = OracleConfig.from_env({"CLAWCRAFT_LOCAL_MODEL": "/models/m.gguf"})
    assert local_cfg.provider == "local"
    assert local_cfg.model_path == "/models/m.gguf"

    none_cfg = OracleConfig.from_env({})
    assert not none_cfg.enabled


def test_build_oracle_without_provider_is_none() -> None:
    assert build_oracle(AgentConfig(name="Alice"), OracleConfig()) is None


def test_build_oracle_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError):
        build_oracle(AgentConfig(name="Alice"), OracleConfig(provider="carrier-pigeon"))


def test_build_oracle_openai(monkeypatch: pytest.MonkeyPatch) -> None:
    import llm_stack.oracle as oracle_mod

    made: List[Dict[str, Any]] = []

    def fake_backend(api_key, *, model, base_url):
        made.append({"api_key": api_key, "model": model, "base_url": base_url})
        return FakeBackend(reply='{"action":"flee"}')

    monkeypatch.setattr(oracle_mod, "OpenAIBackend", fake_backend)

    oracle = build_oracle(
        AgentConfig(name="Scout Bot", type="explorer"),
        OracleConfig(provider="openai", api_key="sk-test", max_tokens=20),
    )
    assert oracle is not None
    assert made == [{"api_key": "sk-test", "model": DEFAULT_OPENAI_MODEL, "base_url": None}]
    assert oracle.decide(make_state()) == Action.flee()
