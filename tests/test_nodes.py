"""
Tests for content tree nodes
"""

import pytest

from polymodal.nodes import (
    Element,
    Fragment,
    Leaf,
    Modality,
    NodeKind,
    PrimitiveNode,
    fragment,
    h,
    to_nodes,
    tree_modality,
)
from polymodal.primitives import Heading, Paragraph, Strong
from polymodal.utils import ContentError, InvalidModality, ModalityMismatch


def Greeting(*, name, children=None, **_):
    return f"Hello {name}"


class TestModality:
    """Tests for the modality tag."""

    def test_values(self):
        """Test the closed set of values."""
        assert [m.value for m in Modality] == ["display", "flat-markup", "serialized"]

    def test_coerce_string(self):
        """Test string values coerce to members."""
        assert Modality.coerce("flat-markup") is Modality.FLAT_MARKUP
        assert Modality.coerce(Modality.SERIALIZED) is Modality.SERIALIZED

    @pytest.mark.parametrize("value", ["markdown", "DISPLAY", "", None, 3])
    def test_coerce_invalid(self, value):
        """Test values outside the set are rejected, never treated as display."""
        with pytest.raises(InvalidModality) as exc_info:
            Modality.coerce(value)
        assert isinstance(exc_info.value, ValueError)
        assert isinstance(exc_info.value, ContentError)

    def test_is_textual(self):
        assert not Modality.DISPLAY.is_textual
        assert Modality.FLAT_MARKUP.is_textual


class TestChildren:
    """Tests for child coercion."""

    def test_scalars_become_leaves(self):
        assert to_nodes(["a", 3, 1.5]) == (Leaf("a"), Leaf(3), Leaf(1.5))

    def test_none_and_bools_dropped(self):
        assert to_nodes([None, True, False, "x"]) == (Leaf("x"),)

    def test_nested_lists_flattened(self):
        assert to_nodes(["a", ["b", ("c",)]]) == (Leaf("a"), Leaf("b"), Leaf("c"))

    def test_invalid_child(self):
        with pytest.raises(TypeError):
            to_nodes([object()])


class TestBuilder:
    """Tests for h() and fragment()."""

    def test_structural_element(self):
        """Test tag names build structural elements."""
        node = h("p", "Hello", class_name="lead")
        assert node == Element("p", {"class_name": "lead"}, (Leaf("Hello"),))
        assert node.kind is NodeKind.STRUCTURAL

    def test_structural_element_rejects_modality(self):
        with pytest.raises(TypeError):
            h("p", "Hello", modality=Modality.DISPLAY)

    def test_primitive_node(self):
        """Test multimodal components build primitive nodes carrying the modality."""
        node = h(Heading, "Topic", level=2, modality="flat-markup")
        assert isinstance(node, PrimitiveNode)
        assert node.kind is NodeKind.PRIMITIVE
        assert node.modality is Modality.FLAT_MARKUP
        assert node.props == {"level": 2}
        assert node.children == (Leaf("Topic"),)
        assert node.name == "Heading"

    def test_multimodal_requires_modality(self):
        with pytest.raises(InvalidModality):
            h(Heading, "Topic", level=2)

    def test_plain_function_without_modality(self):
        node = h(Greeting, name="Ada")
        assert node.modality is None
        assert node.execute() == "Hello Ada"

    def test_non_callable_component(self):
        with pytest.raises(TypeError):
            h(42)

    def test_fragment(self):
        group = fragment("a", h("b", "x"))
        assert isinstance(group, Fragment)
        assert group.kind is NodeKind.FRAGMENT
        assert len(group.children) == 2

    def test_nodes_are_immutable(self):
        node = h("p", "x")
        with pytest.raises(AttributeError):
            node.tag = "div"


class TestModalityConsistency:
    """Tests for the one-modality-per-tree rule."""

    def test_mixed_child_rejected(self):
        """Test a child built for another modality fails at construction."""
        child = h(Strong, "bold", modality=Modality.DISPLAY)
        with pytest.raises(ModalityMismatch) as exc_info:
            h(Paragraph, child, modality=Modality.FLAT_MARKUP)
        assert exc_info.value.parent == "Paragraph"
        assert exc_info.value.child == "Strong"
        assert exc_info.value.found is Modality.DISPLAY

    def test_mismatch_through_structural_elements(self):
        """Test the check sees through elements and fragments."""
        child = h("span", fragment(h(Strong, "bold", modality=Modality.SERIALIZED)))
        with pytest.raises(ModalityMismatch):
            h(Paragraph, child, modality=Modality.FLAT_MARKUP)

    def test_matching_children_accepted(self):
        child = h(Strong, "bold", modality=Modality.FLAT_MARKUP)
        node = h(Paragraph, "Be ", child, modality=Modality.FLAT_MARKUP)
        assert node.children[1] is child

    def test_tree_modality(self, page):
        assert tree_modality(page(Modality.SERIALIZED)) is Modality.SERIALIZED
        assert tree_modality(h("p", "plain")) is None


class TestExecute:
    """Tests for PrimitiveNode.execute()."""

    def test_single_child_unwrapped(self):
        def echo(*, children=None):
            return children

        assert h(echo, "a").execute() == Leaf("a")
        assert h(echo, "a", "b").execute() == (Leaf("a"), Leaf("b"))
        assert h(echo).execute() is None

    def test_overrides(self):
        node = h(Greeting, name="Ada")
        assert node.execute(name="Grace") == "Hello Grace"

    def test_modality_passed_to_multimodal(self):
        node = h(Heading, "Topic", level=3, modality=Modality.FLAT_MARKUP)
        assert node.execute() == "### Topic\n\n"
