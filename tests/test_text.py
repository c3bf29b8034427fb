import json

from redpiler.text import ColorCode, TextComponent, TextComponentBuilder


def test_color_code_parse():
    assert ColorCode.parse("a") is ColorCode.GREEN
    assert ColorCode.parse("l") is ColorCode.BOLD
    assert ColorCode.parse("r") is ColorCode.RESET
    assert ColorCode.parse("z") is None
    assert ColorCode.parse("A") is None


def test_is_formatting():
    assert ColorCode.BOLD.is_formatting()
    assert ColorCode.RESET.is_formatting()
    assert not ColorCode.RED.is_formatting()


def test_plain_text_single_component():
    components = TextComponent.from_legacy_text("hello")
    assert [c.text for c in components] == ["hello"]
    assert components[0].is_text_only()


def test_color_code_starts_new_component():
    components = TextComponent.from_legacy_text("&ahello")
    assert len(components) == 1
    assert components[0].color is ColorCode.GREEN
    assert components[0].text == "hello"


def test_formatting_splits_existing_text():
    components = TextComponent.from_legacy_text("ab&lcd")
    assert [c.text for c in components] == ["ab", "cd"]
    assert not components[0].bold
    assert components[1].bold


def test_hex_color():
    components = TextComponent.from_legacy_text("#ff0000red")
    assert len(components) == 1
    assert components[0].color == "#ff0000"
    assert components[0].text == "red"


def test_invalid_hex_and_codes_stay_text():
    for message in ("#ffzz", "#ab", "&", "&zq"):
        components = TextComponent.from_legacy_text(message)
        assert "".join(c.text for c in components) == message
        assert all(c.color is None for c in components)


def test_url_gets_click_event():
    message = "see example.com now"
    components = TextComponent.from_legacy_text(message)
    assert "".join(c.text for c in components) == message
    linked = [c for c in components if c.click_event is not None]
    assert len(linked) == 1
    assert linked[0].text == "example.com"
    assert linked[0].click_event.value == "example.com"
    assert linked[0].click_event.action == "open_url"


def test_json_omits_defaults():
    component = TextComponent("plain")
    assert component.to_json_dict() == {"text": "plain"}
    assert json.loads(component.encode_json()) == component.to_json_dict()


def test_json_for_link_and_style():
    (component,) = [
        c for c in TextComponent.from_legacy_text("&ldocs.example.com") if c.text
    ]
    data = json.loads(component.encode_json())
    assert data["bold"] is True
    assert data["clickEvent"] == {"action": "open_url", "value": "docs.example.com"}
    assert "italic" not in data


def test_json_keeps_non_ascii():
    component = TextComponent("§")
    assert "§" in component.encode_json()


def test_builder():
    component = (
        TextComponentBuilder("x").color_code(ColorCode.RED).strikethrough(True).finish()
    )
    assert component.text == "x"
    assert component.strikethrough
    assert component.to_json_dict()["color"] == "red"
    assert not component.is_text_only()
    hex_component = TextComponentBuilder("y").color("#123abc").finish()
    assert hex_component.to_json_dict()["color"] == "#123abc"