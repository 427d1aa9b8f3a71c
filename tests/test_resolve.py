"""Tests for the reducer and value resolver."""

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from jinjawax.config import WaxConfig
from jinjawax.keygen import keygen_helper
from jinjawax.resolve import reducer, resolve_value
from jinjawax.templating import TemplateEngine
from jinjawax.types import LoadedFile, WaxError


@pytest.fixture
def config(tmp_path: Path) -> WaxConfig:
    return WaxConfig(engine=TemplateEngine(), cwd=tmp_path, keygen=keygen_helper)


def _loaded(tmp_path: Path, name: str, exports: Any) -> LoadedFile:
    return LoadedFile(path=tmp_path / name, base=tmp_path, exports=exports)


class TestReducer:
    """Tests for each row of the reducer's decision table."""

    def test_falsy_export_ignored(self, config: WaxConfig, tmp_path: Path) -> None:
        acc = {"kept": 1}
        for value in (None, {}, 0, ""):
            assert reducer(config, acc, _loaded(tmp_path, "x.py", value)) == {"kept": 1}

    def test_register_result_merged(self, config: WaxConfig, tmp_path: Path) -> None:
        def register(engine: Any, options: WaxConfig) -> dict[str, int]:
            assert engine is options.engine
            return {"x": 1}

        export = SimpleNamespace(register=register)
        acc = reducer(config, {"y": 2}, _loaded(tmp_path, "x.py", export))
        assert acc == {"x": 1, "y": 2}

    def test_register_non_mapping_result_ignored(
        self, config: WaxConfig, tmp_path: Path
    ) -> None:
        calls: list[Any] = []
        export = SimpleNamespace(register=lambda engine, options: calls.append(engine))

        acc = reducer(config, {}, _loaded(tmp_path, "x.py", export))
        assert acc == {}
        assert calls == [config.engine]

    def test_register_checked_before_mapping(self, config: WaxConfig, tmp_path: Path) -> None:
        class Registering(dict):
            def register(self, engine: Any, options: Any) -> dict[str, str]:
                return {"from_register": "yes"}

        export = Registering(ignored=True)
        acc = reducer(config, {}, _loaded(tmp_path, "x.py", export))
        assert acc == {"from_register": "yes"}

    def test_mapping_keys_merged(self, config: WaxConfig, tmp_path: Path) -> None:
        acc = reducer(config, {}, _loaded(tmp_path, "x.py", {"x": 1, "y": 2}))
        assert acc == {"x": 1, "y": 2}

    def test_scalar_stored_under_generated_key(
        self, config: WaxConfig, tmp_path: Path
    ) -> None:
        acc = reducer(config, {}, _loaded(tmp_path, "nested/value.py", 42))
        assert acc == {"nested-value": 42}

    def test_later_values_overwrite(self, config: WaxConfig, tmp_path: Path) -> None:
        acc = reducer(config, {}, _loaded(tmp_path, "a.py", {"x": 1}))
        acc = reducer(config, acc, _loaded(tmp_path, "b.py", {"x": 2}))
        assert acc == {"x": 2}

    def test_scalar_without_keygen_raises(self, config: WaxConfig, tmp_path: Path) -> None:
        config = config.merge(keygen=None)
        with pytest.raises(WaxError, match="No key generator"):
            reducer(config, {}, _loaded(tmp_path, "a.py", "value"))


class TestResolveValue:
    """Tests for resolve_value."""

    def test_falsy(self, config: WaxConfig) -> None:
        assert resolve_value(config, None) == {}
        assert resolve_value(config, "") == {}
        assert resolve_value(config, {}) == {}

    def test_callable_returning_mapping(self, config: WaxConfig) -> None:
        def source(engine: Any, options: WaxConfig) -> dict[str, int]:
            assert engine is config.engine
            assert options is config
            return {"a": 1}

        assert resolve_value(config, source) == {"a": 1}

    def test_callable_returning_none(self, config: WaxConfig) -> None:
        def source(engine: TemplateEngine, options: WaxConfig) -> None:
            engine.register_helper("direct", lambda: "direct")

        assert resolve_value(config, source) == {}
        assert "direct" in config.engine.helpers

    def test_mapping(self, config: WaxConfig) -> None:
        assert resolve_value(config, {"a": 1, "b": 2}) == {"a": 1, "b": 2}

    def test_register_object(self, config: WaxConfig) -> None:
        source = SimpleNamespace(register=lambda engine, options: {"r": True})
        assert resolve_value(config, source) == {"r": True}

    def test_glob(self, config: WaxConfig, tmp_path: Path) -> None:
        (tmp_path / "helpers").mkdir()
        (tmp_path / "helpers" / "one.py").write_text("exports = 1\n")
        (tmp_path / "helpers" / "two.py").write_text("exports = {'two': 2, 'three': 3}\n")

        assert resolve_value(config, "helpers/*.py") == {"one": 1, "two": 2, "three": 3}

    def test_pattern_list(self, config: WaxConfig, tmp_path: Path) -> None:
        (tmp_path / "a.json").write_text('{"a": 1}')
        (tmp_path / "b.json").write_text('{"b": 2}')

        assert resolve_value(config, ["a.json", "b.json"]) == {"a": 1, "b": 2}

    def test_glob_scan_order_is_lexicographic(self, config: WaxConfig, tmp_path: Path) -> None:
        (tmp_path / "b.json").write_text('{"key": "b"}')
        (tmp_path / "a.json").write_text('{"key": "a"}')
        (tmp_path / "c.json").write_text('{"key": "c"}')

        assert resolve_value(config, "*.json") == {"key": "c"}

    def test_custom_reducer(self, config: WaxConfig, tmp_path: Path) -> None:
        (tmp_path / "a.json").write_text('{"a": 1}')
        seen: list[str] = []

        def collect(options: WaxConfig, acc: dict[str, Any], file: LoadedFile) -> dict[str, Any]:
            seen.append(file.path.name)
            acc[file.path.stem] = file.exports
            return acc

        config = config.merge(reducer=collect)
        assert resolve_value(config, "*.json") == {"a": {"a": 1}}
        assert seen == ["a.json"]

    def test_unsupported_source(self, config: WaxConfig) -> None:
        with pytest.raises(TypeError, match="Unsupported registration source"):
            resolve_value(config, 42)
