import json
from pathlib import Path

import pytest

from archcode.animation import AnimationSequencer
from archcode.builder import BuildContext, ScopedBuilder
from archcode.dsl import parse_workspace
from archcode.dsl.ast import ALL
from archcode.errors import InvalidAnimationStep
from archcode.views import ViewFilter, ViewKind, ViewRegistry

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture()
def sequencer():
    decl = parse_workspace(json.loads((FIXTURES / "basic_with_containers.json").read_text()))
    context = BuildContext.create()
    ScopedBuilder(context).build(decl.model)
    view = ViewRegistry(context.graph, context.registry).define_view(
        ViewKind.CONTAINER, "system", ViewFilter(include=(ALL,))
    )
    return AnimationSequencer(view, context.graph)


def test_steps_reveal_relationships_once_both_ends_are_visible(sequencer):
    first = sequencer.add_step(["user"])
    second = sequencer.add_step(["webapp"])
    third = sequencer.add_step(["database"])
    assert [s.order for s in sequencer.steps] == [1, 2, 3]
    assert first.relationships == ()
    assert second.relationships == ("r1",)
    assert third.relationships == ("r2",)
    assert sequencer.view.animation[1].to_dict() == {"order": 2, "elements": ["webapp"], "relationships": ["r1"]}


def test_step_with_several_elements(sequencer):
    step = sequencer.add_step(["user", "webapp", "user"])
    assert step.elements == ("user", "webapp")
    assert step.relationships == ("r1",)


def test_empty_step(sequencer):
    with pytest.raises(InvalidAnimationStep, match="empty"):
        sequencer.add_step([])


def test_steps_must_be_disjoint(sequencer):
    sequencer.add_step(["user"])
    with pytest.raises(InvalidAnimationStep) as info:
        sequencer.add_step(["webapp", "user"])
    assert info.value.identifiers == ("user",)
    assert len(sequencer.steps) == 1


def test_steps_stay_inside_the_view(sequencer):
    with pytest.raises(InvalidAnimationStep, match="outside the view") as info:
        sequencer.add_step(["system"])
    assert info.value.scope == ("SoftwareSystem-Container",)
