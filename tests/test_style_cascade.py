import json
from unittest.mock import Mock

import pytest
import requests

from archcode.errors import ThemeLoadFailure
from archcode.model.elements import Container, ContainerInstance, Person, Relationship
from archcode.model.graph import ModelGraph
from archcode.styles import StyleCascade, apply_styles, element_rule, load_theme, relationship_rule
from archcode.styles.rules import DEFAULT_ELEMENT_STYLE, DEFAULT_RELATIONSHIP_STYLE, normalise_color, normalise_shape

THEME_URL = "https://themes.example.com/blue/theme.json"


def mock_theme_response(monkeypatch, document, status_code=200):
    calls = []
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(document)

    def mock_get(url, *args, **kwargs):
        calls.append(url)
        return response

    monkeypatch.setattr(requests, "get", mock_get)
    return calls


def test_unmatched_targets_fall_back_to_defaults():
    person = Person(id="user", name="User")
    assert apply_styles(person, []) == DEFAULT_ELEMENT_STYLE
    rel = Relationship(id="r1", source="a", destination="b")
    assert apply_styles(rel, []) == DEFAULT_RELATIONSHIP_STYLE


def test_default_theme_palette():
    rules = load_theme("default")
    web = apply_styles(Container(id="web", name="Web"), rules)
    assert web["shape"] == "RoundedBox"
    assert web["background"] == "#438dd5"
    assert web["color"] == "#ffffff"
    db = apply_styles(Container(id="db", name="DB", tags=("Database",)), rules)
    assert db["shape"] == "Cylinder"
    assert apply_styles(Relationship(id="r1", source="a", destination="b"), rules)["dashed"] is False


def test_local_rules_override_themes(monkeypatch):
    mock_theme_response(monkeypatch, {"name": "Blue", "elements": [{"tag": "Person", "background": "#0000ff"}]})
    cascade = StyleCascade()
    cascade.load_theme(THEME_URL)
    person = Person(id="user", name="User")
    assert cascade.resolve(person)["background"] == "#0000ff"

    cascade.add_local(element_rule("Person", background="#ff0000"))
    assert cascade.resolve(person)["background"] == "#ff0000"

    override = element_rule("Person", source="view:main", background="#00ff00", shape="robot")
    style = cascade.resolve(person, overrides=[override])
    assert style["background"] == "#00ff00"
    assert style["shape"] == "Robot"


def test_theme_is_fetched_once(monkeypatch):
    calls = mock_theme_response(monkeypatch, {"elements": [{"tag": "Element", "fontSize": 30}]})
    cascade = StyleCascade()
    cascade.load_theme(THEME_URL)
    cascade.load_theme(THEME_URL)
    assert calls == [THEME_URL]
    assert cascade.themes == [THEME_URL]
    assert cascade.resolve(Person(id="u", name="U"))["font_size"] == 30


def test_theme_http_errors(monkeypatch):
    mock_theme_response(monkeypatch, {}, status_code=404)
    with pytest.raises(ThemeLoadFailure, match="404"):
        load_theme(THEME_URL)

    def broken_get(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "get", broken_get)
    with pytest.raises(ThemeLoadFailure, match="offline") as info:
        load_theme(THEME_URL)
    assert info.value.identifiers == (THEME_URL,)


def test_theme_from_file_resolves_icons(tmp_path):
    path = tmp_path / "theme.json"
    path.write_text(json.dumps({
        "name": "Local",
        "elements": [{"tag": "Database", "icon": "icons/db.png", "shape": "cylinder"}],
        "relationships": [{"tag": "Relationship", "strokeWidth": 4}],
    }))
    rules = load_theme(path.as_uri())
    db_rule, rel_rule = rules
    assert db_rule.source == "theme:Local"
    assert db_rule.properties["icon"] == (tmp_path / "icons" / "db.png").as_uri()
    assert rel_rule.target == "relationship"
    assert rel_rule.properties == {"thickness": 4}
    # plain paths work too; icons stay as written
    assert load_theme(str(path))[0].properties["icon"] == "icons/db.png"


def test_invalid_themes(tmp_path):
    with pytest.raises(ThemeLoadFailure):
        load_theme(str(tmp_path / "missing.json"))

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(ThemeLoadFailure, match="valid JSON"):
        load_theme(str(bad_json))

    no_tag = tmp_path / "no_tag.json"
    no_tag.write_text(json.dumps({"elements": [{"shape": "Box"}]}))
    with pytest.raises(ThemeLoadFailure, match="validation"):
        load_theme(str(no_tag))

    bad_shape = tmp_path / "bad_shape.json"
    bad_shape.write_text(json.dumps({"elements": [{"tag": "Element", "shape": "Blob"}]}))
    with pytest.raises(ThemeLoadFailure, match="Blob"):
        load_theme(str(bad_shape))


def test_instances_inherit_definition_tags():
    graph = ModelGraph()
    graph.add_element(Container(id="db", name="DB", tags=("Database",)))
    instance = ContainerInstance(id="db_1", name="DB", environment="live", definition="db")
    graph.add_element(instance)
    style = apply_styles(instance, [element_rule("Database", shape="Cylinder")], graph)
    assert style["shape"] == "Cylinder"


def test_relationship_rules_only_match_relationships():
    rules = [relationship_rule("Asynchronous", dashed=True, color="#F00"), element_rule("Element", color="#123")]
    rel = Relationship(id="r1", source="a", destination="b", interaction="asynchronous")
    style = apply_styles(rel, rules)
    assert style["color"] == "#ff0000"
    assert style["dashed"] is True


def test_normalisers():
    assert normalise_shape("roundedbox") == "RoundedBox"
    assert normalise_shape("Mobile-Device-Portrait") == "MobileDevicePortrait"
    assert normalise_color("#ABC") == "#aabbcc"
    with pytest.raises(ValueError):
        normalise_color("blue")
    with pytest.raises(ValueError):
        normalise_shape(3)


def test_local_database_colour_beats_theme():
    cascade = StyleCascade(loader=lambda url: [element_rule("Database", source="theme:blue", color="#0000ff")])
    cascade.load_theme("blue")
    cascade.add_local(element_rule("Database", color="#ff0000"))
    db = Container(id="db", name="DB", tags=("Database",))
    assert cascade.resolve(db)["color"] == "#ff0000"


def test_theme_file_url_with_escaped_characters(tmp_path):
    folder = tmp_path / "my themes"
    folder.mkdir()
    path = folder / "t.json"
    path.write_text(json.dumps({"elements": [{"tag": "Person", "background": "#00ff00"}]}))
    (rule,) = load_theme(path.as_uri())
    assert "%20" in path.as_uri()
    assert rule.properties == {"background": "#00ff00"}
