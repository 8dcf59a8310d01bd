from zimbuild.graphs import graph_from_rules


class StubRule:
    def __init__(self, component, name, deps=()):
        self.component = component
        self.name = name
        self.deps = list(deps)

    def node_id(self):
        return f"{self.component}.{self.name}"

    def dependencies(self):
        return list(self.deps)


def test_simple_rule_graph():
    rules = [StubRule("foo", "build"), StubRule("foo", "test")]
    graph = graph_from_rules(rules)
    assert graph.number_of_nodes() == 2
    assert graph.nodes["foo.build"]["rule"] is rules[0]
    assert graph.nodes["foo.test"]["rule"] is rules[1]


def test_connected_rule_graph():
    test = StubRule("foo", "test")
    build = StubRule("foo", "build", [test])
    graph = graph_from_rules([build, test])
    assert graph.number_of_nodes() == 2
    successors = list(graph.successors("foo.build"))
    assert successors == ["foo.test"]
    assert graph.nodes[successors[0]]["rule"].node_id() == "foo.test"


def test_transitive_dependencies_are_added():
    base = StubRule("a", "build")
    middle = StubRule("b", "build", [base])
    top = StubRule("c", "build", [middle])
    graph = graph_from_rules([top])
    assert set(graph.nodes) == {"a.build", "b.build", "c.build"}
    assert set(graph.edges) == {("c.build", "b.build"), ("b.build", "a.build")}
    assert list(graph.predecessors("a.build")) == ["b.build"]


def test_shared_dependency_appears_once():
    shared = StubRule("lib", "build")
    one = StubRule("x", "build", [shared])
    two = StubRule("y", "build", [shared])
    graph = graph_from_rules([one, two])
    assert graph.number_of_nodes() == 3
    assert sorted(graph.predecessors("lib.build")) == ["x.build", "y.build"]


def test_empty_rules():
    assert graph_from_rules([]).number_of_nodes() == 0