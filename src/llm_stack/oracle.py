# src/llm_stack/oracle.py
"""
LLM-backed decision oracle.

One short prompt per decision: who the agent is, the current capped state
as compact JSON, and the menu of actions as example JSON lines. The first
flat JSON object in the reply becomes the Action. Any failure (backend
error, no object, bad JSON) yields `wait`.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from contracts.types import Action, AgentType, StateSnapshot
from .backend import LLMBackend, OpenAIBackend
from .config import OracleConfig
from .json_utils import extract_first_json_object, load_json_or_none

log = logging.getLogger(__name__)

ACTION_MENU = "\n".join(
    [
        '{"action":"mine","block":"oak_log"}',
        '{"action":"explore","direction":"north|south|east|west"}',
        '{"action":"attack","target":"zombie"}',
        '{"action":"eat"}',
        '{"action":"flee"}',
        '{"action":"craft","item":"planks","count":4}',
        '{"action":"chat","message":"Hello!"}',
        '{"action":"wait"}',
    ]
)


def build_prompt(name: str, agent_type: str, personality: str, snapshot: StateSnapshot) -> str:
    state_json = json.dumps(snapshot.to_dict(), separators=(",", ":"))
    return (
        f"You are {name}, a Minecraft {agent_type} bot.\n"
        f"Personality: {personality}\n"
        "\n"
        f"Current state: {state_json}\n"
        "\n"
        "Choose ONE action (JSON only):\n"
        f"{ACTION_MENU}"
    )


def parse_action(text: str) -> Optional[Action]:
    """First flat JSON object in `text` as an Action, or None."""
    raw = extract_first_json_object(text)
    if raw is None:
        return None
    data, err = load_json_or_none(raw, context="decision")
    if data is None:
        return None
    return Action.from_dict(data)


class LLMDecisionOracle:
    """DecisionOracle that asks an LLMBackend for one action per snapshot."""

    def __init__(
        self,
        backend: LLMBackend,
        *,
        name: str,
        agent_type: AgentType | str,
        personality: str,
        max_tokens: int = 50,
        temperature: float = 0.7,
    ) -> None:
        self._backend = backend
        self._name = name
        self._type = agent_type.value if isinstance(agent_type, AgentType) else str(agent_type)
        self._personality = personality
        self._max_tokens = max_tokens
        self._temperature = temperature

    def decide(self, snapshot: StateSnapshot) -> Action:
        prompt = build_prompt(self._name, self._type, self._personality, snapshot)
        try:
            text = self._backend.generate(
                prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as exc:
            log.error("[%s] AI error: %s", self._name, exc)
            return Action.wait()

        action = parse_action(text)
        if action is None:
            log.debug("[%s] no usable action in reply %r", self._name, text)
            return Action.wait()
        return action


def build_backend(oracle_config: OracleConfig) -> Optional[LLMBackend]:
    if oracle_config.provider == "openai":
        return OpenAIBackend(
            oracle_config.api_key,
            model=oracle_config.model,
            base_url=oracle_config.base_url,
        )
    if oracle_config.provider == "local":
        # Optional dependency; only needed for local models.
        from .backend_llamacpp import LlamaCppBackend

        return LlamaCppBackend(oracle_config)
    if oracle_config.provider is None:
        return None
    raise ValueError(f"Unknown oracle provider: {oracle_config.provider!r}")


def build_oracle(agent_config, oracle_config: Optional[OracleConfig] = None) -> Optional[LLMDecisionOracle]:
    """
    Oracle for `agent_config` (an agent.config.AgentConfig), or None when
    no backend is configured. `oracle_config` defaults to OracleConfig.from_env().
    """
    cfg = oracle_config if oracle_config is not None else OracleConfig.from_env()
    backend = build_backend(cfg)
    if backend is None:
        return None
    return LLMDecisionOracle(
        backend,
        name=agent_config.name,
        agent_type=agent_config.type,
        personality=agent_config.personality,
        max_tokens=cfg.max_tokens,
        temperature=cfg.temperature,
    )
