"""Tests for the Jinja manifest renderer."""

import threading
from unittest.mock import MagicMock

import pytest

from manifest_jinja.config.cache import RenderCache, TemplateSpec, path_key_func
from manifest_jinja.config.values import static_values
from manifest_jinja.context import RenderContext
from manifest_jinja.errors import (
    ContextCancelledError,
    DecodeError,
    PipelineError,
    SourceValidationError,
    TemplateExecutionError,
    TemplateParseError,
    ValuesError,
)
from manifest_jinja.objects import get_annotation
from manifest_jinja.pipeline.annotations import (
    ANNOTATION_SOURCE_FILE,
    ANNOTATION_SOURCE_PATH,
    ANNOTATION_SOURCE_TYPE,
)
from manifest_jinja.pipeline.filters import KindFilter, NotFilter
from manifest_jinja.pipeline.options import (
    RendererConfig,
    with_cache,
    with_cache_key_func,
    with_filters,
    with_sandbox,
    with_source_annotations,
    with_transformers,
)
from manifest_jinja.pipeline.renderer import Renderer
from manifest_jinja.pipeline.transformers import LabelTransformer
from manifest_jinja.templates.fs import DirectoryFS, MemoryFS
from manifest_jinja.templates.loader import Source

PROVENANCE_KEYS = {
    ANNOTATION_SOURCE_TYPE,
    ANNOTATION_SOURCE_PATH,
    ANNOTATION_SOURCE_FILE,
}


def names(objects):
    return [o["metadata"]["name"] for o in objects]


def kinds(objects):
    return [o["kind"] for o in objects]


@pytest.fixture
def source(manifests_fs, default_values):
    """Source over the manifest templates with complete values."""
    return Source(
        fs=manifests_fs, path="*.yaml.j2", values=static_values(default_values)
    )


class TestRendererConstruction:
    """Test Renderer construction and validation."""

    def test_name(self, source):
        """Test the renderer type name."""
        assert Renderer([source]).name == "jinja"

    def test_requires_sources(self):
        """Test an empty source list is rejected."""
        with pytest.raises(SourceValidationError, match="at least one source"):
            Renderer([])

    def test_invalid_source(self, manifests_fs):
        """Test invalid sources are rejected at construction."""
        with pytest.raises(SourceValidationError):
            Renderer([Source(fs=manifests_fs, path="")])
        with pytest.raises(SourceValidationError):
            Renderer([Source(fs=None, path="*.j2")])

    def test_invalid_option(self, source):
        """Test invalid option values are rejected."""
        with pytest.raises(SourceValidationError, match="invalid renderer"):
            Renderer([source], with_filters("not a filter"))
        with pytest.raises(SourceValidationError):
            Renderer([source], with_cache(ttl_seconds=-1))

    def test_templates_compiled_lazily(self, counting_fs):
        """Test construction does not compile templates."""
        Renderer([Source(fs=counting_fs, path="*.yaml.j2")])
        assert counting_fs.glob_calls == 0

    def test_options_are_pure(self):
        """Test applying an option never changes the input configuration."""
        base = RendererConfig()
        updated = with_source_annotations()(base)
        assert base.source_annotations is False
        assert updated.source_annotations is True

    def test_options_accumulate_in_order(self):
        """Test repeated filter options append."""
        first, second = KindFilter("A"), KindFilter("B")
        config = with_filters(second)(with_filters(first)(RendererConfig()))
        assert config.filters == (first, second)


class TestRendererProcess:
    """Test Renderer.process."""

    def test_process_renders_all_templates(self, source):
        """Test all matching templates render in sorted order."""
        objects = Renderer([source]).process()

        assert kinds(objects) == ["ConfigMap", "Deployment", "Service"]
        assert objects[1]["spec"]["replicas"] == 2
        assert objects[0]["data"]["greeting"] == "hello"

    def test_render_values_take_precedence(self, source):
        """Test render-time values override source values."""
        objects = Renderer([source]).process(values={"replicas": 5})
        assert objects[1]["spec"]["replicas"] == 5

    def test_nested_render_values_merge(self, manifests_fs):
        """Test nested render-time values merge into source values."""
        fs = MemoryFS(
            {"d.j2": "kind: D\nmetadata:\n  name: {{ image.repo }}:{{ image.tag }}\n"}
        )
        source = Source(
            fs=fs,
            path="*.j2",
            values=static_values({"image": {"repo": "nginx", "tag": "1.0"}}),
        )

        objects = Renderer([source]).process(values={"image": {"tag": "2.0"}})

        assert names(objects) == ["nginx:2.0"]

    def test_source_values_not_mutated(self, manifests_fs, default_values):
        """Test rendering never changes the source's values."""
        declared = dict(default_values)
        source = Source(fs=manifests_fs, path="*.yaml.j2", values=lambda ctx: declared)

        Renderer([source]).process(values={"replicas": 9})

        assert declared == default_values

    def test_source_without_values(self):
        """Test a source without a values function uses render values only."""
        source = Source(fs=MemoryFS({"a.j2": "kind: {{ kind }}"}), path="*.j2")
        assert Renderer([source]).process(values={"kind": "A"}) == [{"kind": "A"}]

    def test_sources_concatenate_in_order(self, default_values):
        """Test objects are grouped by source in configuration order."""
        second = Source(fs=MemoryFS({"z.j2": "kind: Second"}), path="*.j2")
        first = Source(fs=MemoryFS({"a.j2": "kind: First"}), path="*.j2")

        assert kinds(Renderer([second, first]).process()) == ["Second", "First"]

    def test_directory_source(self, manifests_dir, default_values):
        """Test rendering from an on-disk collection."""
        source = Source(
            fs=DirectoryFS(manifests_dir),
            path="**/*.yaml.j2",
            values=static_values(default_values),
        )

        objects = Renderer([source]).process()

        assert kinds(objects) == ["Deployment", "ConfigMap", "Service"]

    def test_strict_lookup(self, manifests_fs):
        """Test a missing value is an execution error, never a blank field."""
        source = Source(
            fs=manifests_fs,
            path="deployment.yaml.j2",
            values=static_values({"name": "web"}),
        )

        with pytest.raises(TemplateExecutionError) as exc_info:
            Renderer([source]).process()

        assert exc_info.value.template == "deployment.yaml.j2"

    def test_values_function_error(self, manifests_fs):
        """Test a failing values function aborts with ValuesError."""

        def broken(ctx):
            raise ConnectionError("vault unavailable")

        source = Source(fs=manifests_fs, path="*.yaml.j2", values=broken)

        with pytest.raises(ValuesError, match="vault unavailable") as exc_info:
            Renderer([source]).process()

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_values_function_receives_context(self, manifests_fs, default_values):
        """Test the call's context is passed to the values function."""
        values = MagicMock(return_value=default_values)
        ctx = RenderContext(timeout=30)
        source = Source(fs=manifests_fs, path="*.yaml.j2", values=values)

        Renderer([source]).process(ctx)

        values.assert_called_once_with(ctx)

    def test_values_function_cancellation(self, manifests_fs):
        """Test a values function observing cancellation yields ValuesError."""
        ctx = RenderContext()

        def cancel_then_values(inner_ctx):
            ctx.cancel()
            inner_ctx.raise_if_done()
            return {}

        renderer = Renderer(
            [Source(fs=manifests_fs, path="*.yaml.j2", values=cancel_then_values)]
        )

        with pytest.raises(ValuesError, match="cancelled"):
            renderer.process(ctx)

    def test_values_function_must_return_mapping(self, manifests_fs):
        """Test a non-mapping result is a values error."""
        source = Source(fs=manifests_fs, path="*.yaml.j2", values=lambda ctx: ["a"])

        with pytest.raises(ValuesError, match="expected a mapping"):
            Renderer([source]).process()

    def test_cancelled_context_checked_between_sources(self, source):
        """Test a cancelled context stops processing before the next source."""
        ctx = RenderContext()
        ctx.cancel()

        with pytest.raises(ContextCancelledError):
            Renderer([source]).process(ctx)

    def test_failure_returns_no_partial_result(self, source, manifests_fs):
        """Test an error in a later source aborts the whole call."""
        broken = Source(fs=manifests_fs, path="*.tmpl")

        with pytest.raises(TemplateParseError, match="matches no files"):
            Renderer([source, broken]).process()

    def test_decode_error(self):
        """Test malformed rendered output is a decode error."""
        source = Source(fs=MemoryFS({"a.j2": "kind: [oops"}), path="*.j2")

        with pytest.raises(DecodeError):
            Renderer([source]).process()

    def test_transformer_error(self, source):
        """Test transformer failures abort the call."""

        def broken(obj):
            raise ValueError("bad transform")

        with pytest.raises(PipelineError, match="bad transform"):
            Renderer([source], with_transformers(broken)).process()

    def test_unsandboxed_environment(self):
        """Test the sandbox can be disabled."""
        source = Source(
            fs=MemoryFS({"a.j2": "kind: {{ ''.__class__.__name__ }}"}), path="*.j2"
        )
        assert Renderer([source], with_sandbox(False)).process() == [{"kind": "str"}]


class TestRendererConcurrency:
    """Test concurrent use of one renderer."""

    def test_concurrent_first_use_compiles_once(self, counting_fs, default_values):
        """Test templates compile exactly once under concurrent first use."""
        renderer = Renderer(
            [
                Source(
                    fs=counting_fs,
                    path="*.yaml.j2",
                    values=static_values(default_values),
                )
            ]
        )
        barrier = threading.Barrier(12)
        results = []
        errors = []

        def worker(n):
            try:
                barrier.wait()
                results.append(renderer.process(values={"replicas": n}))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(12)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert counting_fs.glob_calls == 1
        assert sorted(r[1]["spec"]["replicas"] for r in results) == list(range(12))


class TestRendererCaching:
    """Test render caching."""

    def test_cached_results_equal(self, source):
        """Test two calls with equal values return equal objects."""
        renderer = Renderer([source], with_cache())

        first = renderer.process(values={"replicas": 3})
        second = renderer.process(values={"replicas": 3})

        assert first == second
        assert renderer.cache.size() == 1

    def test_cache_hit_skips_rendering(self, counting_fs, default_values):
        """Test a cache hit returns the stored objects without rendering."""
        source = Source(
            fs=counting_fs, path="*.yaml.j2", values=static_values(default_values)
        )
        cache = RenderCache()
        cache.set(
            TemplateSpec(path="*.yaml.j2", values=default_values),
            [{"kind": "Cached"}],
            scope=source,
        )
        renderer = Renderer([source], with_cache(cache=cache))

        assert renderer.process() == [{"kind": "Cached"}]
        assert counting_fs.glob_calls == 0

        renderer.process(values={"replicas": 7})
        assert counting_fs.glob_calls == 1

    def test_mutating_results_does_not_affect_cache(self, source):
        """Test returned objects are independent of cached ones."""
        renderer = Renderer([source], with_cache())

        first = renderer.process()
        first[0]["metadata"]["name"] = "mutated"
        first[1]["spec"]["replicas"] = 100
        first.clear()

        second = renderer.process()

        assert second[0]["metadata"]["name"] == "web-config"
        assert second[1]["spec"]["replicas"] == 2

    def test_transformers_do_not_affect_cache(self, source, default_values):
        """Test the cache holds the pre-transform objects."""
        cache = RenderCache()
        renderer = Renderer(
            [source],
            with_cache(cache=cache),
            with_transformers(LabelTransformer({"env": "prod"})),
        )

        transformed = renderer.process()
        spec = TemplateSpec(path="*.yaml.j2", values=default_values)
        cached = cache.get(spec, scope=source)

        assert all("labels" not in o["metadata"] for o in cached)
        assert all(o["metadata"]["labels"] == {"env": "prod"} for o in transformed)
        assert renderer.process() == transformed

    def test_default_key_separates_values(self, source):
        """Test different values use different cache entries and outputs."""
        renderer = Renderer([source], with_cache())

        one = renderer.process(values={"replicas": 1})
        two = renderer.process(values={"replicas": 2})

        assert one[1]["spec"]["replicas"] == 1
        assert two[1]["spec"]["replicas"] == 2
        assert renderer.cache.size() == 2

    def test_path_key_shares_entry(self, source):
        """Test a path-only key function shares one entry across values."""
        renderer = Renderer([source], with_cache(), with_cache_key_func(path_key_func))

        one = renderer.process(values={"replicas": 1})
        two = renderer.process(values={"replicas": 2})

        assert renderer.cache.size() == 1
        assert two[1]["spec"]["replicas"] == one[1]["spec"]["replicas"] == 1

    def test_key_func_without_cache_is_ignored(self, source):
        """Test a key function alone does not enable caching."""
        renderer = Renderer([source], with_cache_key_func(path_key_func))
        assert renderer.cache is None

    def test_key_func_with_supplied_cache_rejected(self, source):
        """Test a key function cannot replace a supplied cache's own."""
        shared = RenderCache()

        with pytest.raises(SourceValidationError, match="supplied cache"):
            Renderer(
                [source], with_cache(cache=shared), with_cache_key_func(path_key_func)
            )

    def test_supplied_cache_is_populated(self, source):
        """Test a supplied cache instance is the one rendered into."""
        shared = RenderCache()
        renderer = Renderer([source], with_cache(cache=shared))

        renderer.process()

        assert renderer.cache is shared
        assert shared.size() == 1

    def test_sources_sharing_a_path_cached_separately(self):
        """Test same-path sources over different collections never share entries."""
        base = Source(fs=MemoryFS({"a.yaml.j2": "kind: A"}), path="*.yaml.j2")
        overlay = Source(fs=MemoryFS({"b.yaml.j2": "kind: B"}), path="*.yaml.j2")
        uncached = Renderer([base, overlay])
        cached = Renderer([base, overlay], with_cache())

        assert kinds(uncached.process()) == ["A", "B"]
        assert kinds(cached.process()) == ["A", "B"]
        assert kinds(cached.process()) == ["A", "B"]
        assert cached.cache.size() == 2

    def test_shared_cache_across_renderers(self, source):
        """Test renderers over the same source reuse one cache entry."""
        shared = RenderCache()
        first = Renderer([source], with_cache(cache=shared))
        second = Renderer([source], with_cache(cache=shared))

        assert first.process() == second.process()
        assert shared.size() == 1

    def test_unhashable_source_rejected_with_cache(self):
        """Test a source that cannot key cache entries is rejected."""

        class UnhashableFS(MemoryFS):
            __hash__ = None

        source = Source(fs=UnhashableFS({"a.j2": "kind: A"}), path="*.j2")

        assert kinds(Renderer([source]).process()) == ["A"]
        with pytest.raises(SourceValidationError, match="render cache"):
            Renderer([source], with_cache())


class TestRendererPipeline:
    """Test filters, transformers and annotations through process."""

    def test_filter_and_transform(self):
        """Test {A, B, C} minus B, each labelled env=prod, in order."""
        fs = MemoryFS(
            {
                "objects.j2": (
                    "kind: ConfigMap\nmetadata:\n  name: a\n---\n"
                    "kind: Secret\nmetadata:\n  name: b\n---\n"
                    "kind: ConfigMap\nmetadata:\n  name: c\n"
                )
            }
        )
        renderer = Renderer(
            [Source(fs=fs, path="*.j2")],
            with_filters(NotFilter(KindFilter("Secret"))),
            with_transformers(LabelTransformer({"env": "prod"})),
        )

        objects = renderer.process()

        assert names(objects) == ["a", "c"]
        assert all(o["metadata"]["labels"] == {"env": "prod"} for o in objects)

    def test_stages_apply_across_sources(self, source):
        """Test filters see the combined object set of all sources."""
        extra = Source(
            fs=MemoryFS({"x.j2": "kind: Secret\nmetadata:\n  name: s\n"}), path="*.j2"
        )
        renderer = Renderer(
            [source, extra], with_filters(lambda o: o["kind"] in ("Secret", "Service"))
        )

        assert kinds(renderer.process()) == ["Service", "Secret"]

    def test_annotations_enabled(self, source):
        """Test every object carries the provenance annotations."""
        objects = Renderer([source], with_source_annotations()).process()

        files = []
        for obj in objects:
            assert get_annotation(obj, ANNOTATION_SOURCE_TYPE) == "jinja"
            assert get_annotation(obj, ANNOTATION_SOURCE_PATH) == "*.yaml.j2"
            files.append(get_annotation(obj, ANNOTATION_SOURCE_FILE))

        assert files == ["configmap.yaml.j2", "deployment.yaml.j2", "service.yaml.j2"]

    def test_annotations_disabled_by_default(self, source):
        """Test no provenance annotations are added when disabled."""
        for obj in Renderer([source]).process():
            annotations = obj["metadata"].get("annotations") or {}
            assert not PROVENANCE_KEYS & set(annotations)

    def test_annotations_explicitly_disabled(self, source):
        """Test disabling annotations after enabling them."""
        renderer = Renderer(
            [source], with_source_annotations(), with_source_annotations(False)
        )
        for obj in renderer.process():
            assert "annotations" not in obj["metadata"]
