"""
Tests for the modality dispatcher
"""

import pytest

from polymodal.dispatch import MultiModalComponent, multimodal, passthrough, suppressed
from polymodal.nodes import Modality, PrimitiveNode
from polymodal.utils import InvalidModality, UnsupportedModality


@pytest.fixture
def widget():
    """A component recording which implementation ran."""
    calls = []

    def _flat(*, modality, **props):
        calls.append(("flat", modality, props))
        return "flat"

    @multimodal(flat_markup=_flat)
    def Widget(*, modality, **props):
        """A test widget."""
        calls.append(("display", modality, props))
        return "display"

    return Widget, calls


class TestDispatch:
    """Tests for routing calls to implementations."""

    def test_display(self, widget):
        Widget, calls = widget
        assert Widget(Modality.DISPLAY, size=1) == "display"
        assert calls == [("display", Modality.DISPLAY, {"size": 1})]

    def test_dedicated_implementation(self, widget):
        """Test the modality-specific implementation gets the props unchanged."""
        Widget, calls = widget
        assert Widget("flat-markup", size=1, children="x") == "flat"
        assert calls == [("flat", Modality.FLAT_MARKUP, {"size": 1, "children": "x"})]

    def test_fallback_patches_modality(self, widget):
        """Test a missing implementation falls back to display with the requested modality."""
        Widget, calls = widget
        assert Widget(Modality.SERIALIZED, size=2) == "display"
        assert calls == [("display", Modality.SERIALIZED, {"size": 2})]

    def test_invalid_modality(self, widget):
        Widget, calls = widget
        with pytest.raises(InvalidModality):
            Widget("pdf")
        assert calls == []

    def test_display_only(self):
        """Test display-only components refuse other modalities."""
        @multimodal(display_only=True)
        def Chart(**_):
            return "chart"

        assert Chart(Modality.DISPLAY) == "chart"
        with pytest.raises(UnsupportedModality) as exc_info:
            Chart(Modality.FLAT_MARKUP)
        assert exc_info.value.primitive == "Chart"
        assert exc_info.value.modality is Modality.FLAT_MARKUP
        assert not Chart.supports(Modality.FLAT_MARKUP)
        assert Chart.supports(Modality.DISPLAY)

    def test_implementation_table(self):
        """Test implementations given as a mapping keyed by modality value."""
        component = multimodal({"serialized": lambda **_: "s"})(lambda **_: "d")
        assert component(Modality.SERIALIZED) == "s"
        assert component(Modality.FLAT_MARKUP) == "d"

    def test_keyword_overrides_table(self):
        component = multimodal(
            {"serialized": lambda **_: "table", "flat-markup": lambda **_: "flat"},
            serialized=lambda **_: "keyword",
        )(lambda **_: "d")
        assert component(Modality.SERIALIZED) == "keyword"
        assert component(Modality.FLAT_MARKUP) == "flat"


class TestDefinition:
    """Tests for component definition errors and introspection."""

    def test_display_key_rejected(self):
        with pytest.raises(ValueError):
            multimodal({Modality.DISPLAY: lambda **_: ""})(lambda **_: "")

    def test_display_only_with_implementations(self):
        with pytest.raises(ValueError):
            multimodal(flat_markup=lambda **_: "", display_only=True)(lambda **_: "")

    def test_non_callable_implementation(self):
        with pytest.raises(TypeError):
            multimodal({"flat-markup": "nope"})(lambda **_: "")

    def test_unknown_modality_key(self):
        with pytest.raises(InvalidModality):
            multimodal({"markdown": lambda **_: ""})(lambda **_: "")

    def test_introspection(self, widget):
        Widget, _ = widget
        assert isinstance(Widget, MultiModalComponent)
        assert Widget.name == "Widget"
        assert Widget.__doc__ == "A test widget."
        assert Widget.has_implementation(Modality.FLAT_MARKUP)
        assert not Widget.has_implementation(Modality.SERIALIZED)
        assert Widget.implemented_modalities == [Modality.DISPLAY, Modality.FLAT_MARKUP]
        assert "Widget" in repr(Widget)

    def test_element(self, widget):
        Widget, calls = widget
        node = Widget.element(Modality.FLAT_MARKUP, "child", size=3)
        assert isinstance(node, PrimitiveNode)
        assert node.modality is Modality.FLAT_MARKUP
        assert node.props == {"size": 3}
        assert calls == []

    def test_custom_name(self):
        component = multimodal(name="Callout")(lambda **_: "")
        assert component.name == "Callout"


class TestHelpers:
    """Tests for suppressed and passthrough."""

    def test_suppressed(self):
        assert suppressed(modality=Modality.FLAT_MARKUP, src="x") == ""

    def test_passthrough(self):
        assert passthrough(modality=Modality.FLAT_MARKUP, children="x") == "x"
        assert passthrough() is None

    def test_passes_through(self):
        component = multimodal(flat_markup=passthrough)(lambda **_: "")
        assert component.passes_through(Modality.FLAT_MARKUP)
        assert not component.passes_through(Modality.SERIALIZED)
