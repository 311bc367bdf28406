"""
Tests for the renderer and HTML serialization
"""

import asyncio

import pytest

from polymodal.dispatch import multimodal
from polymodal.nodes import Element, Fragment, Leaf, Modality, fragment, h
from polymodal.primitives import Heading, Paragraph, Strong
from polymodal.render import (
    arender,
    arender_markup,
    arender_serialized_items,
    attribute_name,
    clean_markup_output,
    format_attributes,
    iter_children,
    render,
    render_markup,
    render_mode,
    render_serialized,
    render_serialized_items,
    to_html,
)
from polymodal.utils import InvalidModality, ModalityMismatch, PendingRender

FLAT = Modality.FLAT_MARKUP
SERIALIZED = Modality.SERIALIZED
DISPLAY = Modality.DISPLAY


def Badge(*, children=None, **_):
    """Plain function component: always returns display output."""
    return h("span", children, class_name="badge")


class TestModalitySelection:
    """Tests for choosing the render modality."""

    def test_inferred_from_tree(self):
        assert render(h(Paragraph, "x", modality=FLAT)) == "x\n\n"

    def test_default_display(self):
        assert render("plain") == Leaf("plain")
        assert render(h("p", "x")) == Element("p", {}, (Leaf("x"),))

    def test_explicit_modality(self):
        assert render(["a", "b"], "flat-markup") == "ab"
        assert render(["a", 1], SERIALIZED) == "a\n1"

    def test_invalid_modality(self):
        with pytest.raises(InvalidModality):
            render("x", "markdown")

    def test_mismatch(self):
        """Test a tree built for one modality cannot be rendered as another."""
        with pytest.raises(ModalityMismatch) as exc_info:
            render(h(Paragraph, "x", modality=FLAT), DISPLAY)
        assert exc_info.value.parent == "render"
        assert exc_info.value.child == "Paragraph"

    def test_render_mode(self):
        assert render_mode(Heading, "flat-markup", level=1, children="T") == "# T\n\n"
        assert render_mode(Strong, FLAT, children=["a", "b"]) == "**ab**"


class TestDisplay:
    """Tests for display rendering."""

    def test_primitives_expanded(self):
        tree = render(h(Paragraph, "a", modality=DISPLAY))
        assert tree == Element("p", {"class_name": "mb-6 text-gray-700 leading-relaxed"}, (Leaf("a"),))

    def test_several_roots(self):
        tree = render([h("p", "a"), h("p", "b")])
        assert isinstance(tree, Fragment)
        assert [child.tag for child in tree.children] == ["p", "p"]

    def test_fragments_flattened(self):
        tree = render(h("div", fragment("a", fragment("b"))))
        assert tree.children == (Leaf("a"), Leaf("b"))

    def test_plain_function(self):
        assert to_html(render(h(Badge, "new"))) == '<span class="badge">new</span>'


class TestTextualCasts:
    """Tests for display output reaching a textual modality."""

    def test_flat_markup_casts_to_raw_html(self):
        node = h(Paragraph, "x ", h(Badge, "a & b"), modality=FLAT)
        assert render(node) == 'x <span class="badge">a & b</span>\n\n'

    def test_serialized_casts_to_scalar(self):
        assert render(h("p", "hi"), SERIALIZED) == '"<p>hi</p>"'
        assert render(h(Badge, "x: y"), SERIALIZED) == '"<span class=\\"badge\\">x: y</span>"'

    def test_plain_function_gets_modality(self):
        seen = []

        def Echo(*, modality=None, **_):
            seen.append(modality)
            return "echo"

        assert render(h(Echo, modality=FLAT)) == "echo"
        assert render(h(Echo)) == Leaf("echo")
        assert seen == [FLAT, None]

    def test_serialized_implementation_gets_indent(self):
        @multimodal(serialized=lambda *, indent_level=0, **_: f"{'  ' * indent_level}level: {indent_level}")
        def Echo(**_):
            return "x"

        assert render_serialized_items([h(Echo, modality=SERIALIZED)], 1) == "  - level: 2"


class TestAsync:
    """Tests for asynchronous primitives."""

    def make_component(self, order):
        async def Slow(*, label, **_):
            await asyncio.sleep(0)
            order.append(label)
            return label

        return Slow

    def test_sync_render_raises(self):
        order = []
        Slow = self.make_component(order)
        with pytest.raises(PendingRender) as exc_info:
            render(h(Slow, label="a", modality=FLAT))
        assert exc_info.value.primitive == "Slow"
        assert order == []

    def test_document_order(self):
        order = []
        Slow = self.make_component(order)
        tree = [h(Slow, label=label, modality=FLAT) for label in ("first", "second", "third")]
        assert asyncio.run(arender(tree, FLAT)) == "firstsecondthird"
        assert order == ["first", "second", "third"]

    def test_arender_sync_tree(self):
        assert asyncio.run(arender(h(Paragraph, "x", modality=FLAT))) == "x\n\n"

    def test_wrapping_primitives_await_children(self):
        order = []
        Slow = self.make_component(order)
        tree = h(
            Paragraph,
            h(Strong, h(Slow, label="bold", modality=FLAT), modality=FLAT),
            " ",
            h(Slow, label="plain", modality=FLAT),
            modality=FLAT,
        )
        assert asyncio.run(arender(tree)) == "**bold** plain\n\n"
        assert order == ["bold", "plain"]

    def test_sync_render_names_enclosing_primitive(self):
        Slow = self.make_component([])
        with pytest.raises(PendingRender) as exc_info:
            render(h(Paragraph, h(Slow, label="a", modality=FLAT), modality=FLAT))
        assert exc_info.value.primitive == "Paragraph"

    def test_async_helpers(self):
        Slow = self.make_component([])
        children = [h(Slow, label="a", modality=SERIALIZED), "b: c"]
        assert asyncio.run(arender_serialized_items(children)) == '- a\n- "b: c"'
        assert asyncio.run(arender_markup(["x", h(Slow, label="y", modality=FLAT)])) == "xy"


class TestHtml:
    """Tests for to_html() and attribute formatting."""

    def test_text_escaped(self):
        assert to_html(h("p", "<b> & ")) == "<p>&lt;b&gt; &amp; </p>"

    def test_attribute_escaped(self):
        html = to_html(h("a", "x", href='/q?a=1&b="2"'))
        assert html == '<a href="/q?a=1&amp;b=&#34;2&#34;">x</a>'

    def test_void_tags(self):
        assert to_html(h("br")) == "<br>"
        assert to_html(h("img", src="a.png", alt="")) == '<img src="a.png" alt="">'

    def test_boolean_attributes(self):
        assert to_html(h("input", disabled=True, checked=False, value=None)) == "<input disabled>"

    @pytest.mark.parametrize("prop,expected", [
        ("class_name", "class"),
        ("class_", "class"),
        ("html_for", "for"),
        ("data_id", "data-id"),
        ("aria_label", "aria-label"),
        ("href", "href"),
    ])
    def test_attribute_names(self, prop, expected):
        assert attribute_name(prop) == expected

    def test_style(self):
        assert format_attributes({"style": {"font_size": "12px", "color": None}}) == ' style="font-size: 12px"'
        assert format_attributes({"style": {"color": None}}) == ""

    def test_unescaped_attributes(self):
        assert format_attributes({"title": "a & b"}, escaped=False) == ' title="a & b"'

    def test_raw_inner_html(self):
        node = h("script", dangerously_set_inner_html="if (a < b) {}")
        assert to_html(node) == "<script>if (a < b) {}</script>"

    def test_unrendered_primitive(self):
        with pytest.raises(TypeError, match="Paragraph"):
            to_html(h(Paragraph, "x", modality=DISPLAY))

    def test_values(self):
        assert to_html(None) == ""
        assert to_html(["a", 1, "<"]) == "a1&lt;"

    def test_clean_markup_output(self):
        assert clean_markup_output("a <!-- hidden --> &amp; b") == "a  & b"
        assert clean_markup_output("<!--\nmulti\nline\n-->x &lt;y&gt;") == "x <y>"


class TestHelpers:
    """Tests for helpers used by primitive implementations."""

    def test_render_markup(self):
        assert render_markup(None) == ""
        assert render_markup(["a", 2, h(Strong, "b", modality=FLAT)]) == "a2**b**"

    def test_iter_children(self):
        assert iter_children(["a", fragment("b", fragment("c")), None]) == [Leaf("a"), Leaf("b"), Leaf("c")]

    def test_render_serialized(self):
        children = [h(Paragraph, "A", modality=SERIALIZED), "b"]
        assert render_serialized(children, 1) == "  paragraph:\n    text: A\n  b"

    def test_render_serialized_items(self):
        assert render_serialized_items(["a", "b: c"]) == '- a\n- "b: c"'
        assert render_serialized_items([]) == ""
