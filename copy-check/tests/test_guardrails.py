"""Tests for request validation."""

import pytest

from copycheck.errors import ValidationError
from copycheck.guardrails import parse_json_body, validate_input


def _body(**overrides):
    body = {
        "text": "Join us this weekend",
        "platform": "Instagram",
        "assetType": "Video",
        "constraints": {"maxChars": 120},
        "brand": {"bannedWords": ["cheap"], "requiredPhrases": ["Donate Today"], "tone": {}},
    }
    body.update(overrides)
    return body


def _reason(body):
    with pytest.raises(ValidationError) as exc:
        validate_input(body)
    return exc.value.message


def test_valid_body_is_coerced():
    req = validate_input(_body())
    assert req.text == "Join us this weekend"
    assert req.asset_type == "Video"
    assert req.constraints.max_chars == 120
    assert req.constraints.max_hashtags is None
    assert req.constraints.require_cta is False
    assert req.brand.banned_words == ["cheap"]
    assert req.reading_level_target == "Grade 7"


def test_tone_defaults_fill_missing_weights():
    tone = validate_input(_body(brand={"tone": {"confident": 0.2}})).brand.tone
    assert tone.confident == 0.2
    assert tone.compassionate == 0.7
    assert tone.evidence_led == 1.0


def test_missing_brand_means_empty_lists():
    body = _body()
    del body["brand"]
    req = validate_input(body)
    assert req.brand.banned_words == []
    assert req.brand.required_phrases == []


def test_brand_arrays_are_stringified():
    req = validate_input(_body(brand={"bannedWords": [1, None, "x"], "requiredPhrases": "not a list"}))
    assert req.brand.banned_words == ["1", "x"]
    assert req.brand.required_phrases == []


def test_optional_constraints():
    req = validate_input(_body(constraints={"maxChars": 50.9, "maxHashtags": 2, "requireCTA": True}))
    assert req.constraints.max_chars == 50
    assert req.constraints.max_hashtags == 2
    assert req.constraints.require_cta is True


def test_zero_hashtags_is_a_cap_and_negative_is_unlimited():
    assert validate_input(_body(constraints={"maxChars": 50, "maxHashtags": 0})).constraints.max_hashtags == 0
    assert validate_input(_body(constraints={"maxChars": 50, "maxHashtags": -1})).constraints.max_hashtags is None


def test_not_an_object():
    assert _reason(["text"]) == "Invalid JSON body"


def test_text_required():
    assert _reason(_body(text="   ")) == "text required"
    assert _reason(_body(text=42)) == "text required"


def test_invalid_platform():
    assert _reason(_body(platform="MySpace")) == "invalid platform"


def test_invalid_asset_type():
    assert _reason(_body(assetType="Podcast")) == "invalid assetType"


def test_max_chars_required():
    assert _reason(_body(constraints={})) == "constraints.maxChars required"
    assert _reason(_body(constraints={"maxChars": "280"})) == "constraints.maxChars required"
    assert _reason(_body(constraints={"maxChars": True})) == "constraints.maxChars required"


def test_max_chars_must_be_positive():
    assert "positive" in _reason(_body(constraints={"maxChars": 0}))


def test_rules_apply_in_order():
    # both text and platform are wrong; text is checked first
    assert _reason(_body(text="", platform="MySpace")) == "text required"


def test_parse_json_body_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_json_body(b"{not json")
    assert parse_json_body(b'{"a": 1}') == {"a": 1}
