import json
from pathlib import Path

import pytest

from archcode.builder import BuildContext, ScopedBuilder
from archcode.dsl import parse_workspace
from archcode.dsl.ast import ALL
from archcode.errors import DuplicateIdentifier, EmptyView, UnresolvedElement
from archcode.views import LayoutDirective, ViewFilter, ViewKind, ViewRegistry

FIXTURES = Path(__file__).parent / "fixtures"


def make_registry(name):
    decl = parse_workspace(json.loads((FIXTURES / name).read_text()))
    context = BuildContext.create(decl.identifiers)
    ScopedBuilder(context).build(decl.model)
    return ViewRegistry(context.graph, context.registry)


@pytest.fixture()
def views():
    return make_registry("basic_with_containers.json")


def test_system_context_all(views):
    view = views.define_view(ViewKind.SYSTEM_CONTEXT, "system", ViewFilter(include=(ALL,)))
    assert view.key == "SoftwareSystem-SystemContext"
    assert view.title == "[System Context] Software System"
    assert set(view.elements) == {"system", "user"}
    # only the implied user -> system relationship connects the two
    (rel_id,) = view.relationships
    rel = views.graph.get_relationship(rel_id)
    assert (rel.source, rel.destination, rel.implied) == ("user", "system", True)


def test_container_all_never_includes_subject(views):
    view = views.define_view(ViewKind.CONTAINER, "system", ViewFilter(include=(ALL,)))
    assert view.key == "SoftwareSystem-Container"
    assert view.elements == ("webapp", "database", "user")
    assert view.relationships == ("r1", "r2")
    assert view.layout == LayoutDirective()


def test_exclude_removes_elements(views):
    view = views.define_view(ViewKind.CONTAINER, "system", ViewFilter(include=(ALL,), exclude=("user",)))
    assert view.elements == ("webapp", "database")
    assert view.relationships == ("r2",)


def test_explicit_include_outside_reach(views):
    with pytest.raises(UnresolvedElement) as info:
        views.define_view(ViewKind.CONTAINER, "system", ViewFilter(include=("webapp", "system")), key="c")
    assert info.value.scope == ("c",)
    assert "not reachable" in info.value.message


def test_empty_view(views):
    with pytest.raises(EmptyView):
        views.define_view(ViewKind.COMPONENT, "webapp", ViewFilter(include=(ALL,)))
    with pytest.raises(EmptyView):
        views.define_view(ViewKind.CONTAINER, "system", ViewFilter())


def test_duplicate_key(views):
    views.define_view(ViewKind.CONTAINER, "system", ViewFilter(include=(ALL,)), key="main")
    with pytest.raises(DuplicateIdentifier, match="main"):
        views.define_view(ViewKind.SYSTEM_CONTEXT, "system", ViewFilter(include=(ALL,)), key="main")
    assert len(views) == 1
    assert views.get("main").kind is ViewKind.CONTAINER


def test_subject_must_have_the_right_type(views):
    with pytest.raises(UnresolvedElement, match="Component view subject"):
        views.define_view(ViewKind.COMPONENT, "system", ViewFilter(include=(ALL,)))


def test_deployment_all_hides_groups():
    views = make_registry("deployment_groups.json")
    view = views.define_view(
        ViewKind.DEPLOYMENT, ALL, ViewFilter(include=(ALL,)), environment="Example 2"
    )
    assert view.key == "All-Example2-Deployment"
    assert view.environment == "example_2"
    assert "service_instance1" not in view.elements
    assert set(view.elements) == {"server_1_2", "api_4", "database_4", "server_2_2", "api_5", "database_5"}
    assert len(view.relationships) == 2


def test_deployment_include_adds_hosts():
    views = make_registry("deployment_groups.json")
    view = views.define_view(
        ViewKind.DEPLOYMENT, ALL, ViewFilter(include=("api_2",)), environment="Example 1", key="d"
    )
    assert view.elements == ("server_1", "api_2")


def test_deployment_exclude_drops_hosted_elements():
    views = make_registry("deployment_groups.json")
    view = views.define_view(
        ViewKind.DEPLOYMENT,
        ALL,
        ViewFilter(include=(ALL,), exclude=("server_1",)),
        environment="Example 1",
    )
    assert set(view.elements) == {"server_2", "api_3", "database_3"}


def test_deployment_for_one_system():
    views = make_registry("aws.json")
    view = views.define_view(
        ViewKind.DEPLOYMENT, "spring_pet_clinic", ViewFilter(include=(ALL,)), environment="Live"
    )
    assert view.key == "SpringPetClinic-Live-Deployment"
    assert len(view.elements) == 10
    assert len(view.relationships) == 3


def test_unknown_environment():
    views = make_registry("deployment_groups.json")
    with pytest.raises(UnresolvedElement, match="Staging"):
        views.define_view(ViewKind.DEPLOYMENT, ALL, ViewFilter(include=(ALL,)), environment="Staging")


def test_deployment_all_over_an_empty_environment():
    decl = parse_workspace({"model": [{"kind": "deployment_environment", "name": "Staging"}]})
    context = BuildContext.create()
    ScopedBuilder(context).build(decl.model)
    views = ViewRegistry(context.graph, context.registry)
    with pytest.raises(EmptyView):
        views.define_view(ViewKind.DEPLOYMENT, ALL, ViewFilter(include=(ALL,)), environment="Staging")
