#!/usr/bin/env python3
"""
cargodeps/tests.py
==================
통합 테스트

실행:
    python -m cargodeps.tests
"""

import contextlib
import io
import json
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from .models import (
    VisitStatus, Mode, ManifestErrorKind, TraversalRecord,
    ConfigError, ManifestError, FixtureError, GraphLoadError,
    ExportError, RenderError,
)
from .graph import DependencyGraph
from .config import AppConfig
from .sources import (
    manifest_url, parse_manifest, get_dependencies,
    parse_test_repo, load_test_repo,
)
from .analyzer import DependencyAnalyzer, analyze
from .renderer import D2Renderer, write_diagram, open_image
from .reporters import ConsoleReporter, JsonReporter
from .cli import main


SCENARIO = {"A": ["B", "C"], "B": ["C"], "C": []}

CARGO_TOML = """
[package]
name = "demo"
version = "0.1.0"

[dependencies]
serde = "1.0"
# comment
tokio = { version = "1", features = ["full"] }
log = "0.4"

[dev-dependencies]
criterion = "0.5"
"""


def make_graph(mapping):
    g = DependencyGraph()
    g.load_from_map(mapping)
    return g


class TestGraphStore(unittest.TestCase):
    """그래프 저장소 테스트"""

    def test_ensure_node_idempotent(self):
        g = DependencyGraph()
        g.ensure_node("A")
        g.add_edge("A", "B")
        g.ensure_node("A")

        self.assertEqual(g.node_count, 2)
        self.assertEqual(g.get_dependencies("A"), ["B"])

    def test_add_edge_creates_endpoints(self):
        """끊어진 엣지 없음"""
        g = DependencyGraph()
        g.add_edge("A", "B")

        self.assertTrue(g.has_node("A"))
        self.assertTrue(g.has_node("B"))
        self.assertEqual(g.get_dependencies("B"), [])
        self.assertTrue(g.has_edge("A", "B"))
        self.assertFalse(g.has_edge("B", "A"))

    def test_add_edge_twice(self):
        """같은 엣지 두 번 = 한 번"""
        g = DependencyGraph()
        self.assertTrue(g.add_edge("A", "B"))
        self.assertFalse(g.add_edge("A", "B"))

        self.assertEqual(g.get_dependencies("A"), ["B"])
        self.assertEqual(g.edge_count, 1)

    def test_insertion_order_preserved(self):
        g = DependencyGraph()
        for dep in ["z", "a", "m", "a"]:
            g.add_edge("root", dep)
        self.assertEqual(g.get_dependencies("root"), ["z", "a", "m"])

    def test_self_edge(self):
        g = DependencyGraph()
        g.add_edge("A", "A")
        self.assertEqual(g.get_dependencies("A"), ["A"])
        self.assertEqual(g.node_count, 1)

    def test_add_package_replaces(self):
        """add_package는 교체, add_edge는 누적"""
        g = DependencyGraph()
        g.add_edge("root", "old")
        g.add_package("root", ["x", "y", "x"])

        self.assertEqual(g.get_dependencies("root"), ["x", "y"])
        self.assertTrue(g.has_node("x"))
        self.assertTrue(g.has_node("y"))

        g.add_edge("root", "z")
        self.assertEqual(g.get_dependencies("root"), ["x", "y", "z"])

    def test_load_from_map(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.get_all_nodes(), ["A", "B", "C"])
        self.assertEqual(g.edge_count, 3)
        self.assertEqual(g.get_roots(), ["A"])
        self.assertEqual(g.get_leaves(), ["C"])

    def test_load_from_map_dangling_dependency(self):
        g = make_graph({"A": ["X"]})
        self.assertIn("X", g)
        self.assertEqual(len(g), 2)

    def test_load_from_map_is_atomic(self):
        """실패한 로드는 그래프를 바꾸지 않음"""
        g = make_graph({"A": ["B"]})

        with self.assertRaises(GraphLoadError):
            g.load_from_map({"C": ["D"], "E": ["", "F"]})
        with self.assertRaises(GraphLoadError):
            g.load_from_map({"C": "D"})
        with self.assertRaises(ValueError):
            g.load_from_map({"C": [1]})

        self.assertEqual(g.get_all_nodes(), ["A", "B"])
        self.assertEqual(g.get_all_edges(), [("A", "B")])

    def test_reverse_index(self):
        """역방향 인덱스는 나중에 추가된 패키지가 먼저"""
        g = make_graph(SCENARIO)
        rev = g.build_reverse_index()

        self.assertEqual(rev["C"], ["B", "A"])
        self.assertEqual(rev["B"], ["A"])
        self.assertNotIn("A", rev)
        self.assertEqual(g.get_dependents("C"), ["B", "A"])

    def test_reverse_index_not_cached(self):
        g = make_graph(SCENARIO)
        g.build_reverse_index()
        g.add_edge("D", "C")
        self.assertIn("D", g.get_dependents("C"))

    def test_reversed_graph(self):
        g = make_graph(SCENARIO)
        r = g.reversed_graph()
        self.assertEqual(r.get_dependencies("C"), ["B", "A"])
        self.assertEqual(r.get_dependencies("A"), [])
        self.assertEqual(r.edge_count, g.edge_count)


class TestTraversal(unittest.TestCase):
    """트리 순회 테스트"""

    def test_scenario_shared_subtree(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("A").lines(), ["A", "  B", "    C", "  C (visited)"])

    def test_scenario_cycle(self):
        g = make_graph({"A": ["B"], "B": ["A"]})
        self.assertEqual(g.walk("A").lines(), ["A", "  B", "    A (cycle)"])

    def test_scenario_reverse(self):
        g = make_graph(SCENARIO)
        self.assertEqual(
            g.walk_reverse("C").lines(),
            ["C", "  B", "    A", "  A (visited)"]
        )

    def test_scenario_filter(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("A", exclude_filter="C").lines(), ["A", "  B"])

    def test_self_loop(self):
        g = make_graph({"A": ["A", "B"], "B": []})
        self.assertEqual(g.walk("A").lines(), ["A", "  A (cycle)", "  B"])

    def test_long_cycle(self):
        g = make_graph({"A": ["B"], "B": ["C"], "C": ["D"], "D": ["B"]})
        self.assertEqual(
            g.walk("A").lines(),
            ["A", "  B", "    C", "      D", "        B (cycle)"]
        )

    def test_missing_root(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("nope").lines(), ["nope"])
        self.assertEqual(g.walk_reverse("nope").lines(), ["nope"])
        self.assertFalse(g.has_node("nope"))

    def test_empty_graph(self):
        self.assertEqual(DependencyGraph().walk("root").lines(), ["root"])

    def test_filter_on_root(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("A", exclude_filter="A").lines(), [])

    def test_blank_filter_ignored(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("A", exclude_filter="   ").lines(), g.walk("A").lines())

    def test_filter_is_trimmed(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.walk("A", exclude_filter=" C ").lines(), ["A", "  B"])

    def test_filter_prunes_subtree_everywhere(self):
        """필터된 노드의 하위는 다른 경로로도 방문되지 않음"""
        g = make_graph({
            "app": ["tokio-util", "serde"],
            "tokio-util": ["bytes"],
            "serde": ["tokio-core"],
            "tokio-core": ["mio"],
            "bytes": [],
            "mio": [],
        })
        lines = g.walk("app", exclude_filter="tokio").lines()

        self.assertEqual(lines, ["app", "  serde"])
        for line in lines:
            self.assertNotIn("tokio", line)

    def test_each_node_expanded_once(self):
        g = make_graph({
            "A": ["B", "C", "D"],
            "B": ["D", "E"],
            "C": ["D", "E", "A"],
            "D": ["E"],
            "E": ["B"],
        })
        records = g.walk("A").records()
        new = [r.name for r in records if r.status == VisitStatus.NEW]

        self.assertEqual(sorted(new), ["A", "B", "C", "D", "E"])
        self.assertEqual(len(new), len(set(new)))
        self.assertIn(VisitStatus.CYCLE, {r.status for r in records})
        self.assertIn(VisitStatus.VISITED, {r.status for r in records})

    def test_reverse_equals_forward_on_reversed_graph(self):
        graphs = [
            SCENARIO,
            {"A": ["B"], "B": ["A"]},
            {"A": ["A", "B"], "B": ["C"], "C": ["A"]},
            {"x": ["y", "z"], "y": ["w"], "z": ["w"], "w": ["x"], "q": ["w"]},
        ]
        for mapping in graphs:
            g = make_graph(mapping)
            # 엣지를 직접 뒤집어 만든 그래프 (나중에 선언된 패키지가 먼저)
            r = DependencyGraph()
            for name in g.get_all_nodes():
                r.ensure_node(name)
            for name in reversed(g.get_all_nodes()):
                for dep in g.get_dependencies(name):
                    r.add_edge(dep, name)
            for target in g.get_all_nodes():
                self.assertEqual(
                    g.walk_reverse(target).records(),
                    r.walk(target).records(),
                    f"target={target} graph={mapping}"
                )

    def test_traversal_is_restartable(self):
        g = make_graph(SCENARIO)
        traversal = g.walk("A")
        self.assertEqual(list(traversal), list(traversal))

    def test_traversal_is_lazy(self):
        g = make_graph(SCENARIO)
        it = iter(g.walk("A"))
        self.assertEqual(next(it), TraversalRecord(0, "A"))
        self.assertEqual(next(it), TraversalRecord(1, "B"))

    def test_deep_chain_no_recursion_limit(self):
        size = 5000
        mapping = {f"n{i}": [f"n{i + 1}"] for i in range(size)}
        g = make_graph(mapping)

        records = g.walk("n0").records()
        self.assertEqual(len(records), size + 1)
        self.assertEqual(records[-1].depth, size)

    def test_tree_lines(self):
        g = make_graph(SCENARIO)
        self.assertEqual(g.tree_lines("C", reverse=True), ["C", "  B", "    A", "  A (visited)"])

    def test_record_format(self):
        self.assertEqual(TraversalRecord(2, "x", VisitStatus.CYCLE).to_line(), "    x (cycle)")
        self.assertEqual(TraversalRecord(1, "y", VisitStatus.VISITED).to_line(), "  y (visited)")
        self.assertEqual(TraversalRecord(0, "z").to_dict(), {"depth": 0, "name": "z", "status": "new"})


class TestD2Export(unittest.TestCase):
    """D2 내보내기 테스트"""

    def test_scenario_export(self):
        text = make_graph(SCENARIO).to_d2()
        lines = text.splitlines()

        self.assertEqual(lines[0], "direction: right")
        self.assertEqual(lines[2:5], ["A: A", "B: B", "C: C"])
        edges = [l for l in lines if "->" in l]
        self.assertEqual(sorted(edges), ["A -> B", "A -> C", "B -> C"])

    def test_reverse_export(self):
        edges = [l for l in make_graph(SCENARIO).to_d2(reverse=True).splitlines() if "->" in l]
        self.assertEqual(sorted(edges), ["B -> A", "C -> A", "C -> B"])

    def test_isolated_node_declared(self):
        g = DependencyGraph()
        g.ensure_node("lonely")
        text = g.to_d2()
        self.assertIn("lonely: lonely", text)
        self.assertNotIn("->", text)

    def test_sanitized_ids(self):
        g = DependencyGraph()
        g.add_edge("my-crate", "serde_json@1.0")
        text = g.to_d2()

        self.assertIn("my_crate: my-crate", text)
        self.assertIn("my_crate -> serde_json_1_0", text)

    def test_sanitize_fallback(self):
        self.assertEqual(DependencyGraph._d2_id(""), "_")
        self.assertEqual(DependencyGraph._d2_id("ü"), "_")
        self.assertEqual(DependencyGraph._d2_id("a.b/c"), "a_b_c")

    def test_edges_unique_after_sanitizing(self):
        g = DependencyGraph()
        g.add_edge("a-b", "c")
        g.add_edge("a.b", "c")
        g.add_edge("a-b", "c")

        with self.assertLogs("cargodeps.graph", level="WARNING"):
            text = g.to_d2()

        edges = [l for l in text.splitlines() if "->" in l]
        self.assertEqual(edges, ["a_b -> c"])


class TestConfig(unittest.TestCase):
    """설정 로드 테스트"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, text: str) -> Path:
        path = self.dir / "config.yaml"
        path.write_text(text, encoding='utf-8')
        return path

    def test_load_valid(self):
        path = self.write(
            "package_name: demo\n"
            "repo_source: ./Cargo.toml\n"
            "mode: ' real '\n"
            "ascii_tree: true\n"
            "exclude_filter: test\n"
        )
        cfg = AppConfig.load(path)

        self.assertEqual(cfg.package_name, "demo")
        self.assertEqual(cfg.mode, Mode.REAL)
        self.assertTrue(cfg.ascii_tree)
        self.assertEqual(cfg.exclude_filter, "test")
        self.assertEqual(cfg.diagram_file, Path("demo.d2"))

    def test_nested_section_and_defaults(self):
        path = self.write(
            "cargodeps:\n"
            "  package_name: A\n"
            "  repo_source: repo.txt\n"
            "  mode: test\n"
            "  ascii_tree: 'FALSE'\n"
        )
        cfg = AppConfig.load(path)

        self.assertEqual(cfg.mode, Mode.TEST)
        self.assertFalse(cfg.ascii_tree)
        self.assertEqual(cfg.exclude_filter, "")

    def test_missing_field(self):
        path = self.write("repo_source: x\nmode: test\nascii_tree: true\n")
        with self.assertRaises(ConfigError) as ctx:
            AppConfig.load(path)
        self.assertEqual(ctx.exception.field, "package_name")

    def test_blank_field(self):
        path = self.write("package_name: '  '\nrepo_source: x\nmode: test\nascii_tree: true\n")
        with self.assertRaises(ConfigError) as ctx:
            AppConfig.load(path)
        self.assertEqual(ctx.exception.field, "package_name")

    def test_invalid_mode(self):
        path = self.write("package_name: A\nrepo_source: x\nmode: fake\nascii_tree: true\n")
        with self.assertRaises(ConfigError) as ctx:
            AppConfig.load(path)
        self.assertEqual(ctx.exception.field, "mode")

    def test_invalid_bool(self):
        path = self.write("package_name: A\nrepo_source: x\nmode: test\nascii_tree: maybe\n")
        with self.assertRaises(ConfigError) as ctx:
            AppConfig.load(path)
        self.assertEqual(ctx.exception.field, "ascii_tree")

    def test_malformed_yaml(self):
        path = self.write("package_name: [unclosed\n")
        with self.assertRaises(ConfigError):
            AppConfig.load(path)

    def test_not_a_mapping(self):
        path = self.write("- just\n- a list\n")
        with self.assertRaises(ConfigError):
            AppConfig.load(path)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            AppConfig.load(self.dir / "absent.yaml")

    def test_save_and_load(self):
        cfg = AppConfig("A", "repo.txt", Mode.TEST, True, "x", "out/a.d2")
        path = self.dir / "nested" / "saved.yaml"
        cfg.save(path)
        self.assertEqual(AppConfig.load(path), cfg)


class TestManifestSource(unittest.TestCase):
    """Cargo.toml 소스 테스트"""

    def test_parse_dependencies_section(self):
        self.assertEqual(parse_manifest(CARGO_TOML), ["serde", "tokio", "log"])

    def test_parse_missing_section(self):
        with self.assertRaises(ManifestError) as ctx:
            parse_manifest("[package]\nname = \"x\"\n")
        self.assertEqual(ctx.exception.kind, ManifestErrorKind.PARSE)

    def test_parse_empty_section(self):
        with self.assertRaises(ManifestError) as ctx:
            parse_manifest("[dependencies]\n\n[features]\ndefault = []\n")
        self.assertEqual(ctx.exception.kind, ManifestErrorKind.PARSE)

    def test_manifest_url(self):
        self.assertEqual(
            manifest_url("https://github.com/tokio-rs/tokio/"),
            "https://raw.githubusercontent.com/tokio-rs/tokio/master/Cargo.toml"
        )
        self.assertEqual(
            manifest_url("https://example.com/repo.git"),
            "https://example.com/repo/master/Cargo.toml"
        )
        raw = "https://raw.githubusercontent.com/a/b/main/Cargo.toml"
        self.assertEqual(manifest_url(raw), raw)

    def test_local_file_and_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            project = Path(tmpdir)
            (project / "Cargo.toml").write_text(CARGO_TOML)

            self.assertEqual(get_dependencies(str(project / "Cargo.toml")), ["serde", "tokio", "log"])
            self.assertEqual(get_dependencies(tmpdir), ["serde", "tokio", "log"])

    def test_missing_local_path(self):
        with self.assertRaises(ManifestError) as ctx:
            get_dependencies("/definitely/not/here/Cargo.toml")
        self.assertEqual(ctx.exception.kind, ManifestErrorKind.FILE)

    def test_remote_fetch(self):
        response = mock.Mock(status_code=200, text=CARGO_TOML)
        with mock.patch("cargodeps.sources.requests.get", return_value=response) as get:
            deps = get_dependencies("https://github.com/owner/repo", timeout=3)

        self.assertEqual(deps, ["serde", "tokio", "log"])
        get.assert_called_once_with(
            "https://raw.githubusercontent.com/owner/repo/master/Cargo.toml", timeout=3
        )

    def test_remote_http_error(self):
        response = mock.Mock(status_code=404, text="Not Found")
        with mock.patch("cargodeps.sources.requests.get", return_value=response):
            with self.assertRaises(ManifestError) as ctx:
                get_dependencies("https://github.com/owner/repo")
        self.assertEqual(ctx.exception.kind, ManifestErrorKind.NETWORK)
        self.assertIn("404", str(ctx.exception))

    def test_remote_non_200_success(self):
        response = mock.Mock(status_code=203, text=CARGO_TOML)
        with mock.patch("cargodeps.sources.requests.get", return_value=response):
            deps = get_dependencies("https://github.com/owner/repo")
        self.assertEqual(deps, ["serde", "tokio", "log"])

    def test_remote_redirect_status_is_error(self):
        response = mock.Mock(status_code=304, text="")
        with mock.patch("cargodeps.sources.requests.get", return_value=response):
            with self.assertRaises(ManifestError) as ctx:
                get_dependencies("https://github.com/owner/repo")
        self.assertIn("304", str(ctx.exception))

    def test_remote_connection_error(self):
        with mock.patch("cargodeps.sources.requests.get",
                        side_effect=requests.exceptions.ConnectionError("boom")):
            with self.assertRaises(ManifestError) as ctx:
                get_dependencies("https://github.com/owner/repo")
        self.assertEqual(ctx.exception.kind, ManifestErrorKind.NETWORK)


class TestTestRepoSource(unittest.TestCase):
    """테스트 저장소 로더 테스트"""

    def test_parse(self):
        repo = parse_test_repo("A: B C\n\n# comment\nB: C\nC:\n")
        self.assertEqual(repo, {"A": ["B", "C"], "B": ["C"], "C": []})
        self.assertEqual(list(repo), ["A", "B", "C"])

    def test_invalid_line(self):
        with self.assertRaises(FixtureError) as ctx:
            parse_test_repo("A: B\nbroken line\n", source="repo.txt")
        self.assertEqual(ctx.exception.line_no, 2)
        self.assertIn("broken line", str(ctx.exception))

    def test_missing_file(self):
        with self.assertRaises(FixtureError):
            load_test_repo("/definitely/not/here.txt")

    def test_load_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "repo.txt"
            path.write_text("A: B\nB: A\n")
            self.assertEqual(load_test_repo(path), {"A": ["B"], "B": ["A"]})


class TestAnalyzer(unittest.TestCase):
    """분석기 테스트"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_test_mode(self):
        repo = self.dir / "repo.txt"
        repo.write_text("A: B C\nB: C\nC:\n")
        analyzer = DependencyAnalyzer(AppConfig("A", str(repo), Mode.TEST, False))

        self.assertEqual(analyzer.direct_dependencies(), ["B", "C"])
        self.assertEqual(analyzer.tree().lines(), ["A", "  B", "    C", "  C (visited)"])
        self.assertEqual(analyzer.tree(reverse_target="C").lines(), ["C", "  B", "    A", "  A (visited)"])
        self.assertIn("B -> C", analyzer.diagram())

    def test_config_filter_used(self):
        repo = self.dir / "repo.txt"
        repo.write_text("A: B C\nB: C\nC:\n")
        analyzer = DependencyAnalyzer(AppConfig("A", str(repo), Mode.TEST, False, "C"))

        self.assertEqual(analyzer.tree().lines(), ["A", "  B"])
        self.assertEqual(analyzer.tree(exclude_filter="").lines(), ["A", "  B", "    C", "  C (visited)"])

    def test_real_mode(self):
        cargo = self.dir / "Cargo.toml"
        cargo.write_text(CARGO_TOML)
        config_path = self.dir / "config.yaml"
        AppConfig("demo", str(cargo), Mode.REAL, False).save(config_path)

        analyzer = analyze(config_path)
        self.assertEqual(analyzer.direct_dependencies(), ["serde", "tokio", "log"])
        self.assertEqual(analyzer.tree().lines(), ["demo", "  serde", "  tokio", "  log"])

    def test_build_graph_once(self):
        repo = self.dir / "repo.txt"
        repo.write_text("A: B\n")
        analyzer = DependencyAnalyzer(AppConfig("A", str(repo), Mode.TEST, False))

        first = analyzer.build_graph()
        repo.write_text("A: C\n")
        self.assertIs(analyzer.build_graph(), first)
        self.assertEqual(analyzer.direct_dependencies(), ["B"])


class TestReporters(unittest.TestCase):
    """리포터 테스트"""

    def records(self):
        return make_graph(SCENARIO).walk("A")

    def test_console_plain(self):
        out = io.StringIO()
        ConsoleReporter(out).report_tree(self.records())
        self.assertEqual(out.getvalue(), "A\n  B\n    C\n  C (visited)\n")

    def test_console_ascii(self):
        out = io.StringIO()
        ConsoleReporter(out, ascii_tree=True).report_tree(self.records())
        self.assertEqual(
            out.getvalue().splitlines(),
            ["A", "├── B", "│   └── C", "└── C (visited)"]
        )

    def test_console_ascii_nested_last(self):
        g = make_graph({"A": ["B", "D"], "B": ["C"], "D": ["E"], "C": [], "E": []})
        lines = ConsoleReporter(io.StringIO(), ascii_tree=True).format_ascii(g.walk("A").records())
        self.assertEqual(lines, ["A", "├── B", "│   └── C", "└── D", "    └── E"])

    def test_console_color(self):
        out = io.StringIO()
        reporter = ConsoleReporter(out)
        reporter.use_color = True
        reporter.report_tree(make_graph({"A": ["A"]}).walk("A"))
        self.assertIn("\033[91m", out.getvalue())

    def test_dependencies(self):
        out = io.StringIO()
        ConsoleReporter(out).report_dependencies("demo", ["serde", "log"])
        self.assertIn("- serde\n- log\n", out.getvalue())

    def test_json(self):
        out = io.StringIO()
        JsonReporter(out).report_tree(make_graph({"A": ["B"], "B": ["A"]}).walk("A"))
        data = json.loads(out.getvalue())
        self.assertEqual(data[-1], {"depth": 2, "name": "A", "status": "cycle"})


class TestRenderer(unittest.TestCase):
    """다이어그램 저장/렌더링 테스트"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_write_diagram(self):
        path = write_diagram("direction: right\n", self.dir / "out" / "g.d2")
        self.assertEqual(path.read_text(encoding='utf-8'), "direction: right\n")

    def test_write_diagram_error(self):
        blocker = self.dir / "file"
        blocker.write_text("x")
        with self.assertRaises(ExportError):
            write_diagram("x", blocker / "g.d2")

    def test_render_success(self):
        done = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with mock.patch("cargodeps.renderer.subprocess.run", return_value=done) as run:
            out = D2Renderer(binary="d2").render("g.d2", "g.svg")

        self.assertEqual(out, Path("g.svg"))
        self.assertEqual(run.call_args[0][0], ["d2", "g.d2", "g.svg"])

    def test_render_failure(self):
        done = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="bad syntax")
        with mock.patch("cargodeps.renderer.subprocess.run", return_value=done):
            with self.assertRaises(RenderError) as ctx:
                D2Renderer().render("g.d2", "g.svg")
        self.assertIn("bad syntax", str(ctx.exception))

    def test_render_missing_binary(self):
        with mock.patch("cargodeps.renderer.subprocess.run", side_effect=FileNotFoundError()):
            with self.assertRaises(RenderError):
                D2Renderer(binary="no-such-d2").render("g.d2", "g.svg")

    def test_render_permission_denied(self):
        with mock.patch("cargodeps.renderer.subprocess.run",
                        side_effect=PermissionError(13, "Permission denied")):
            with self.assertRaises(RenderError) as ctx:
                D2Renderer(binary="./d2").render("g.d2", "g.svg")
        self.assertIn("Permission denied", str(ctx.exception))

    def test_available(self):
        with mock.patch("cargodeps.renderer.shutil.which", return_value=None):
            self.assertFalse(D2Renderer(binary="no-such-d2").available)
        with mock.patch("cargodeps.renderer.shutil.which", return_value="/usr/bin/d2"):
            self.assertTrue(D2Renderer().available)

    def test_render_timeout(self):
        with mock.patch("cargodeps.renderer.subprocess.run",
                        side_effect=subprocess.TimeoutExpired(cmd="d2", timeout=1)):
            with self.assertRaises(RenderError):
                D2Renderer(timeout=1).render("g.d2", "g.svg")

    def test_open_image(self):
        browser = mock.Mock()
        browser.open.return_value = True
        self.assertTrue(open_image(self.dir / "g.svg", browser=browser))
        self.assertTrue(browser.open.call_args[0][0].startswith("file://"))


class TestCli(unittest.TestCase):
    """CLI 테스트"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)
        repo = self.dir / "repo.txt"
        repo.write_text("A: B C\nB: C\nC:\n")
        self.config = self.dir / "config.yaml"
        AppConfig("A", str(repo), Mode.TEST, False, "", str(self.dir / "A.d2")).save(self.config)

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_tree(self):
        code, out, _ = self.run_cli("tree", str(self.config), "--no-color")
        self.assertEqual(code, 0)
        self.assertEqual(out, "A\n  B\n    C\n  C (visited)\n")

    def test_tree_reverse_json(self):
        code, out, _ = self.run_cli("tree", str(self.config), "--reverse", "C", "--format", "json")
        self.assertEqual(code, 0)
        self.assertEqual([r["name"] for r in json.loads(out)], ["C", "B", "A", "A"])

    def test_deps(self):
        code, out, _ = self.run_cli("deps", str(self.config), "--no-color")
        self.assertEqual(code, 0)
        self.assertIn("- B\n- C\n", out)

    def test_diagram(self):
        code, out, _ = self.run_cli("diagram", str(self.config))
        self.assertEqual(code, 0)
        self.assertIn("A -> B", (self.dir / "A.d2").read_text(encoding='utf-8'))

    def test_diagram_render_without_binary(self):
        with mock.patch("cargodeps.renderer.shutil.which", return_value=None):
            code, _, err = self.run_cli("diagram", str(self.config),
                                        "--render", str(self.dir / "A.svg"),
                                        "--d2-binary", "no-such-d2")
        self.assertEqual(code, 1)
        self.assertIn("no-such-d2", err)
        self.assertFalse((self.dir / "A.d2").exists())

    def test_diagram_render_and_open(self):
        done = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with mock.patch("cargodeps.renderer.shutil.which", return_value="/usr/bin/d2"), \
                mock.patch("cargodeps.renderer.subprocess.run", return_value=done), \
                mock.patch("cargodeps.cli.open_image") as opener:
            code, out, _ = self.run_cli("diagram", str(self.config),
                                        "--render", str(self.dir / "A.svg"), "--open")
        self.assertEqual(code, 0)
        self.assertIn("Rendered", out)
        opener.assert_called_once_with(self.dir / "A.svg")

    def test_diagram_open_requires_render(self):
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("diagram", str(self.config), "--open")
        self.assertEqual(ctx.exception.code, 2)
        self.assertFalse((self.dir / "A.d2").exists())

    def test_config_error(self):
        code, _, err = self.run_cli("tree", str(self.dir / "absent.yaml"))
        self.assertEqual(code, 1)
        self.assertIn("Error:", err)

    def test_no_command(self):
        code, out, _ = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn("usage", out.lower())


def run_tests():
    """테스트 실행"""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestGraphStore))
    suite.addTests(loader.loadTestsFromTestCase(TestTraversal))
    suite.addTests(loader.loadTestsFromTestCase(TestD2Export))
    suite.addTests(loader.loadTestsFromTestCase(TestConfig))
    suite.addTests(loader.loadTestsFromTestCase(TestManifestSource))
    suite.addTests(loader.loadTestsFromTestCase(TestTestRepoSource))
    suite.addTests(loader.loadTestsFromTestCase(TestAnalyzer))
    suite.addTests(loader.loadTestsFromTestCase(TestReporters))
    suite.addTests(loader.loadTestsFromTestCase(TestRenderer))
    suite.addTests(loader.loadTestsFromTestCase(TestCli))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    exit(run_tests())
