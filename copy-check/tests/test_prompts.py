"""Tests for prompt construction."""

import json

from conftest import make_request

from copycheck.prompts import OUTPUT_SCHEMA, STRICT_JSON_INSTRUCTION, build_prompt


def test_system_prompt_states_hard_constraints():
    prompt = build_prompt(make_request(max_chars=140, max_hashtags=2, require_cta=True))
    assert "at most 140 characters" in prompt.system
    assert "URL" in prompt.system
    assert "REQUIRED PHRASE" in prompt.system
    assert "BANNED WORD" in prompt.system
    assert "at most 2 hashtags" in prompt.system
    assert "call to action" in prompt.system
    assert "strict JSON" in prompt.system


def test_user_prompt_embeds_input_and_schema():
    prompt = build_prompt(make_request(text="Hello", banned_words=["cheap"]))
    head, schema = prompt.user.split("\nOUTPUT SCHEMA (JSON):\n")
    payload = json.loads(head.removeprefix("INPUT JSON:\n"))
    assert payload["text"] == "Hello"
    assert payload["assetType"] == "Design"
    assert payload["constraints"]["maxChars"] == 280
    assert payload["constraints"]["requireCTA"] is False
    assert payload["brand"]["bannedWords"] == ["cheap"]
    assert json.loads(schema) == OUTPUT_SCHEMA


def test_strict_prompt_adds_instruction():
    prompt = build_prompt(make_request())
    strict = prompt.strict()
    assert strict.system == prompt.system
    assert strict.user.startswith(prompt.user)
    assert strict.user.endswith(STRICT_JSON_INSTRUCTION)
