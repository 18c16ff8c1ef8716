import pytest

from archcode.errors import DuplicateIdentifier, DuplicateRelationship, UnresolvedElement
from archcode.model.elements import Component, Container, ContainerInstance, DeploymentNode, Person, SoftwareSystem
from archcode.model.graph import ModelGraph
from archcode.model.implied import create_implied_relationships, replicate_instance_relationships


def make_graph():
    graph = ModelGraph()
    graph.add_element(Person(id="user", name="User"))
    graph.add_element(SoftwareSystem(id="shop", name="Shop"))
    graph.add_element(Container(id="web", name="Web", parent="shop"))
    graph.add_element(Container(id="db", name="DB", parent="shop", tags=("Database",)))
    return graph


def test_elements_carry_default_tags():
    graph = make_graph()
    assert graph.get("web").tags == ("Element", "Container")
    assert graph.get("db").tags == ("Element", "Container", "Database")
    assert graph.get("user").to_dict()["type"] == "Person"


def test_add_element_checks_duplicates_and_parents():
    graph = make_graph()
    with pytest.raises(DuplicateIdentifier):
        graph.add_element(Person(id="user", name="Other"))
    with pytest.raises(UnresolvedElement):
        graph.add_element(Container(id="orphan", name="Orphan", parent="missing"))
    with pytest.raises(UnresolvedElement):
        graph.get("missing")


def test_hierarchy_navigation():
    graph = make_graph()
    assert [c.id for c in graph.children("shop")] == ["web", "db"]
    assert [a.id for a in graph.ancestors("db")] == ["shop"]
    assert graph.is_ancestor("shop", "web")
    assert not graph.is_ancestor("web", "shop")
    assert [d.id for d in graph.descendants("shop")] == ["web", "db"]


def test_relationship_ids_and_tags():
    graph = make_graph()
    r1 = graph.add_relationship("user", "web", "Uses")
    r2 = graph.add_relationship("web", "db", "Reads", interaction="asynchronous")
    assert (r1.id, r2.id) == ("r1", "r2")
    assert r1.tags == ("Relationship",)
    assert r2.tags == ("Relationship", "Asynchronous")
    assert graph.get_relationship("r2") is r2
    with pytest.raises(UnresolvedElement):
        graph.get_relationship("r9")


def test_duplicate_relationship_unless_parallel():
    graph = make_graph()
    graph.add_relationship("user", "web", "Uses")
    with pytest.raises(DuplicateRelationship):
        graph.add_relationship("user", "web", "Uses")
    graph.add_relationship("user", "web", "Uses", parallel=True)
    assert len(graph.relationships_between(["user", "web"])) == 2
    # a different label is a different relationship
    graph.add_relationship("user", "web", "Browses")


def test_frozen_graph_rejects_mutation():
    graph = make_graph()
    graph.freeze()
    with pytest.raises(RuntimeError):
        graph.add_element(Person(id="admin", name="Admin"))
    with pytest.raises(RuntimeError):
        graph.add_relationship("user", "web")


def test_implied_relationship_lifts_to_parent():
    graph = make_graph()
    graph.add_relationship("user", "web", "Uses")
    graph.add_relationship("web", "db", "Reads")
    created = create_implied_relationships(graph)
    assert [(r.source, r.destination) for r in created] == [("user", "shop")]
    assert created[0].implied
    assert created[0].linked_to == "r1"
    assert created[0].label == "Uses"


def test_implied_relationship_skips_existing_pairs():
    graph = make_graph()
    graph.add_relationship("user", "shop", "Browses")
    graph.add_relationship("user", "web", "Uses")
    assert create_implied_relationships(graph) == []


def test_replication_links_instances_in_the_same_environment():
    graph = make_graph()
    graph.add_relationship("web", "db", "Reads")
    for env in ("live", "test"):
        graph.add_element(DeploymentNode(id=f"{env}_server", name="Server", environment=env))
        graph.add_element(
            ContainerInstance(id=f"{env}_web", name="Web", parent=f"{env}_server", environment=env, definition="web")
        )
        graph.add_element(
            ContainerInstance(id=f"{env}_db", name="DB", parent=f"{env}_server", environment=env, definition="db")
        )
    created = replicate_instance_relationships(graph)
    assert sorted((r.source, r.destination) for r in created) == [
        ("live_web", "live_db"),
        ("test_web", "test_db"),
    ]
    assert all(r.linked_to == "r1" for r in created)
    assert not graph.has_relationship("live_web", "test_db")


def test_neighbours_in_relationship_order():
    graph = make_graph()
    graph.add_relationship("user", "web", "Uses")
    graph.add_relationship("web", "db", "Reads")
    assert graph.neighbours("web") == ["user", "db"]


def test_replication_keeps_every_label():
    graph = make_graph()
    graph.add_relationship("web", "db", "Reads")
    graph.add_relationship("web", "db", "Writes")
    graph.add_element(DeploymentNode(id="server", name="Server", environment="live"))
    graph.add_element(ContainerInstance(id="web_1", name="Web", parent="server", environment="live", definition="web"))
    graph.add_element(ContainerInstance(id="db_1", name="DB", parent="server", environment="live", definition="db"))
    created = replicate_instance_relationships(graph)
    assert [r.label for r in created] == ["Reads", "Writes"]
    assert graph.has_relationship("web_1", "db_1", "Writes")
    assert not graph.has_relationship("web_1", "db_1", "Deletes")


def test_replication_copies_implied_relationships():
    graph = ModelGraph()
    graph.add_element(SoftwareSystem(id="shop", name="Shop"))
    graph.add_element(Container(id="x", name="X", parent="shop"))
    graph.add_element(Container(id="y", name="Y", parent="shop"))
    graph.add_element(Component(id="a", name="A", parent="x"))
    graph.add_element(Component(id="b", name="B", parent="y"))
    graph.add_relationship("a", "b", "Calls")
    create_implied_relationships(graph)
    graph.add_element(DeploymentNode(id="server", name="Server", environment="live"))
    graph.add_element(ContainerInstance(id="x_1", name="X", parent="server", environment="live", definition="x"))
    graph.add_element(ContainerInstance(id="y_1", name="Y", parent="server", environment="live", definition="y"))
    (copied,) = replicate_instance_relationships(graph)
    assert (copied.source, copied.destination, copied.label) == ("x_1", "y_1", "Calls")
    assert copied.implied
    assert graph.get_relationship(copied.linked_to).implied
    # a second pass finds nothing new to copy
    assert replicate_instance_relationships(graph) == []


def test_relationship_dict_reports_parallel():
    graph = make_graph()
    graph.add_relationship("user", "web", "Uses")
    second = graph.add_relationship("user", "web", "Uses", parallel=True)
    assert second.to_dict()["parallel"] is True
    assert graph.get_relationship("r1").to_dict()["parallel"] is False
