"""Tests for bind() and hydrate()."""

import logging

from vanstate import Element, Text, bind, hydrate


class TestBind:
    def test_primitive_becomes_text(self, runtime):
        count = runtime.state(7)
        node = runtime.bind(lambda: count.val)
        assert isinstance(node, Text)
        assert node.data == "7"

    def test_node_passes_through(self, runtime):
        el = Element("p")
        assert runtime.bind(lambda: el) is el

    def test_none_means_no_node(self, runtime):
        assert runtime.bind(lambda: None) is None

    def test_rerenders_on_change(self, runtime, timer, document):
        count = runtime.state(0)
        document.append(runtime.bind(lambda: f"count: {count.val}"))
        count.val = 1
        timer.advance()
        assert document.text_content == "count: 1"

    def test_module_bind_uses_default_runtime(self, runtime, timer, document):
        count = runtime.state(0)
        document.append(bind(lambda: count.val))
        count.val = 4
        timer.advance()
        assert document.text_content == "4"

    def test_batches_mutations_in_one_tick(self, runtime, timer, document):
        count = runtime.state(0)
        renders = []

        def render():
            renders.append(count.val)
            return f"count: {count.val}"

        document.append(runtime.bind(render))
        count.val = 1
        count.val = 2
        timer.advance()
        assert renders == [0, 2]
        assert document.text_content == "count: 2"

    def test_net_zero_change_skips_render(self, runtime, timer, document):
        count = runtime.state(0)
        renders = []
        document.append(runtime.bind(lambda: renders.append(count.val) or "x"))
        count.val = 1
        count.val = 0
        timer.advance()
        assert renders == [0]

    def test_one_render_for_several_cells(self, runtime, timer, document):
        a = runtime.state(1)
        b = runtime.state(2)
        renders = []

        def render():
            renders.append((a.val, b.val))
            return a.val + b.val

        document.append(runtime.bind(render))
        a.val = 10
        b.val = 20
        timer.advance()
        assert renders == [(1, 2), (10, 20)]
        assert document.text_content == "30"

    def test_render_receives_previous_node(self, runtime, timer, document):
        title = runtime.state("a")

        def render(node):
            el = node if node is not None else Element("p")
            el.set_attribute("title", title.val)
            return el

        el = runtime.bind(render)
        document.append(el)
        title.val = "b"
        timer.advance()
        assert document.children[0] is el
        assert el.get_attribute("title") == "b"

    def test_none_result_removes_node(self, runtime, timer, document):
        hidden = runtime.state(False)
        document.append(runtime.bind(lambda: None if hidden.val else "shown"))
        hidden.val = True
        timer.advance()
        assert document.children == []

    def test_sees_old_val_during_flush(self, runtime, timer, document):
        count = runtime.state(0)
        pairs = []

        def render():
            pairs.append((count.old_val, count.val))
            return ""

        document.append(runtime.bind(render))
        count.val = 1
        timer.advance()
        assert pairs == [(0, 0), (0, 1)]
        assert count.old_val == 1

    def test_failed_rerender_keeps_node(self, runtime, timer, document, caplog):
        count = runtime.state(0)

        def render():
            if count.val == 1:
                raise ValueError("render failed")
            return count.val

        node = runtime.bind(render)
        document.append(node)
        with caplog.at_level(logging.ERROR, logger="vanstate.tracking"):
            count.val = 1
            timer.advance()
        assert document.children[0] is node
        assert "render failed" in caplog.text

        # The next change renders again.
        count.val = 2
        timer.advance()
        assert document.text_content == "2"

    def test_read_and_written_is_not_subscribed(self, runtime):
        renders = runtime.state(0)
        label = runtime.state("x")

        def render():
            renders.val = renders.val + 1
            return label.val

        runtime.bind(render)
        assert renders.bindings == ()
        assert len(label.bindings) == 1

    def test_new_binding_per_render(self, runtime, timer, document):
        count = runtime.state(0)
        document.append(runtime.bind(lambda: count.val))
        first = count.bindings[0]
        count.val = 1
        timer.advance()
        assert first.node is None
        assert count.bindings[-1] is not first
        assert count.bindings[-1].node is document.children[0]

    def test_derivations_inherit_bound_node(self, runtime):
        a = runtime.state(1)

        def render():
            runtime.derive(lambda: a.val * 2)
            return "static"

        node = runtime.bind(render)
        assert a.listeners[0].node is node

    def test_derivations_settle_before_render(self, runtime, timer, document):
        a = runtime.state(1)
        b = runtime.derive(lambda: a.val * 2)
        c = runtime.derive(lambda: b.val + 1)
        seen = []

        def render():
            seen.append((a.val, b.val, c.val))
            return c.val

        document.append(runtime.bind(render))
        a.val = 2
        timer.advance()
        assert seen == [(1, 2, 3), (2, 4, 5)]
        assert document.text_content == "5"


class TestHydrate:
    def test_replaces_existing_node(self, runtime, timer, document):
        count = runtime.state(0)
        existing = Text("server-rendered")
        document.append(existing)
        node = runtime.hydrate(existing, lambda node: f"count: {count.val}")
        assert document.children == [node]
        assert existing.parent is None
        count.val = 3
        timer.advance()
        assert document.text_content == "count: 3"

    def test_render_gets_existing_node(self, runtime, timer, document):
        count = runtime.state(0)
        el = Element("div")
        document.append(el)

        def render(node):
            node.set_attribute("data-count", count.val)
            return node

        assert hydrate(el, render) is el
        assert document.children == [el]
        count.val = 5
        timer.advance()
        assert el.get_attribute("data-count") == 5
