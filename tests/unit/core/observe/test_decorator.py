"""Unit tests for ObserverDecorator."""

from recordwatch.core.observe import ObserverDecorator
from recordwatch.domain.entities import Record


class TestObserverDecorator:
    """Tests for decorator-based observer registration."""

    def test_on_registers_and_returns_function(self, engine, clock) -> None:
        """Test that @on observes the record and leaves the function usable."""
        observers = ObserverDecorator(engine)
        record = {}
        received = []

        @observers.on(record)
        def on_change(changes):
            received.extend(changes)

        record["a"] = 1
        clock.step()

        assert callable(on_change)
        assert [(c.type, c.name) for c in received] == [("add", "a")]
        assert observers.engine is engine

    def test_on_with_accept_filters_types(self, engine, clock) -> None:
        """Test that the accept list is forwarded to observe()."""
        observers = ObserverDecorator(engine)
        record = {"a": 1, "b": 2}
        received = []

        @observers.on(record, accept=["delete"])
        def on_delete(changes):
            received.extend(changes)

        record["a"] = 10
        del record["b"]
        clock.step()

        assert [(c.type, c.name) for c in received] == [("delete", "b")]

    def test_shortcut_decorators(self, engine, clock) -> None:
        """Test on_add, on_update, on_delete and on_prevent_extensions."""
        observers = ObserverDecorator(engine)
        record = Record(a=1, b=2)
        seen: dict[str, list] = {"add": [], "update": [], "delete": [], "sealed": []}

        @observers.on_add(record)
        def added(changes):
            seen["add"].extend(c.name for c in changes)

        @observers.on_update(record)
        def updated(changes):
            seen["update"].extend(c.name for c in changes)

        @observers.on_delete(record)
        def deleted(changes):
            seen["delete"].extend(c.name for c in changes)

        @observers.on_prevent_extensions(record)
        def sealed(changes):
            seen["sealed"].extend(c.type for c in changes)

        record["c"] = 3
        record["a"] = 5
        del record["b"]
        record.prevent_extensions()
        clock.step()

        assert seen == {
            "add": ["c"],
            "update": ["a"],
            "delete": ["b"],
            "sealed": ["preventExtensions"],
        }

    def test_decorated_function_can_be_unobserved(self, engine, clock) -> None:
        """Test that the returned function is the registered handler."""
        observers = ObserverDecorator(engine)
        record = {}
        received = []

        @observers.on(record)
        def on_change(changes):
            received.extend(changes)

        engine.unobserve(record, on_change)
        record["a"] = 1
        clock.step()

        assert received == []
        assert not engine.running
