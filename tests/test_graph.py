import pytest

from tablestream.codec import Int64, String
from tablestream.graph import (
    CrossTable,
    GraphError,
    InputStreams,
    InputTable,
    chain_edges,
    define_group,
    edge_topics,
    group_table,
    input_stream,
    inputs,
    join,
    lookup,
    loop,
    loop_name,
    output,
    persist,
    reset_suffixes,
    set_loop_suffix,
    set_table_suffix,
    strings_to_streams,
    table_name,
    visitor,
)

c = String()


def cb(ctx, msg):
    pass


@pytest.fixture(autouse=True)
def _suffixes():
    reset_suffixes()
    yield
    reset_suffixes()


def test_validate_no_input():
    with pytest.raises(GraphError, match="no input"):
        define_group("group").validate()


def test_validate_ok():
    g = define_group("group", input_stream("input-topic", c, cb))
    g.validate()
    assert g.input_streams()[0].topic == "input-topic"


def test_validate_two_loops():
    g = define_group("group", input_stream("input-topic", c, cb), loop(c, cb), loop(c, cb))
    with pytest.raises(GraphError, match="more than one loop"):
        g.validate()


def test_validate_two_tables():
    g = define_group("group", input_stream("input-topic", c, cb), persist(c), persist(c))
    with pytest.raises(GraphError, match="more than one group table"):
        g.validate()


def test_validate_input_is_group_table():
    g = define_group("group", input_stream(table_name("group"), c, cb), persist(c))
    with pytest.raises(GraphError, match="group table"):
        g.validate()


@pytest.mark.parametrize(
    "edges",
    [
        [input_stream(loop_name("group"), c, cb), loop(c, cb)],
        [input_stream("input-topic", c, cb), join(loop_name("group"), c)],
        [input_stream("input-topic", c, cb), output(loop_name("group"), c)],
        [input_stream("input-topic", c, cb), lookup(loop_name("group"), c)],
    ],
)
def test_validate_uses_loop_stream(edges):
    g = define_group("group", *edges)
    with pytest.raises(GraphError, match="loop stream"):
        g.validate()


def test_validate_visitor_stateless():
    g = define_group("group", input_stream("in", c, cb), visitor("v", cb))
    with pytest.raises(GraphError, match="stateless"):
        g.validate()


def test_validate_visitor_stateful():
    g = define_group("group", input_stream("in", c, cb), visitor("v", cb), persist(c))
    g.validate()
    assert g.all_edges()[-1].topic == "v"


def test_chain_edges():
    assert chain_edges() == []
    assert chain_edges([], []) == []
    assert chain_edges([join("a", None)], []) == [join("a", None)]
    assert chain_edges([join("a", None)], [join("a", None), join("b", None)]) == [
        join("a", None),
        join("a", None),
        join("b", None),
    ]


def test_edges_of_different_kind_not_equal():
    assert join("a", None) != lookup("a", None)
    assert isinstance(lookup("a", None), CrossTable)
    assert isinstance(join("a", None), InputTable)


def test_codec():
    g = define_group(
        "group",
        input_stream("input-topic", c, cb),
        inputs(["input-topic2", "input-topic3"], c, cb),
    )
    for topic in ["input-topic", "input-topic2", "input-topic3"]:
        assert g.codec(topic) is c
    assert g.codec("missing") is None


def test_callback():
    g = define_group(
        "group",
        input_stream("input-topic", c, cb),
        inputs(["input-topic2", "input-topic3"], c, cb),
    )
    for topic in ["input-topic", "input-topic2", "input-topic3"]:
        assert g.callback(topic) is cb
    assert g.callback("missing") is None


def test_getters():
    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        inputs(["t6", "t7"], c, cb),
    )
    assert g.group() == "group"
    assert len(g.input_streams()) == 4
    assert len(g.output_streams()) == 3
    assert g.loop_stream() is None

    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        loop(c, cb),
    )
    assert len(g.input_streams()) == 2
    assert len(g.output_streams()) == 3
    assert g.group_table() is None
    assert g.loop_stream().topic == loop_name("group")

    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        loop(c, cb),
        join("a1", c),
        join("a2", c),
        join("a3", c),
        join("a4", c),
        lookup("b1", c),
        lookup("b2", c),
        persist(c),
    )
    assert len(g.input_streams()) == 2
    assert len(g.output_streams()) == 3
    assert len(g.joint_tables()) == 4
    assert len(g.lookup_tables()) == 2
    assert g.group_table().topic == table_name("group")


def test_inputs_edge():
    topics = inputs(["a", "b", "c"], c, cb)
    assert topics.topic == "a,b,c"
    assert "a,b,c/String" in str(topics)
    assert topics.codec is c


def test_inputs_empty():
    assert inputs([], c, cb) is None
    empty = InputStreams()
    assert str(empty) == "empty input streams"
    assert empty.topic == ""
    assert empty.codec is None


def test_edge_str():
    assert str(input_stream("x", Int64(), cb)) == "x/Int64"
    assert str(visitor("reset", cb)) == "visitor reset"


def test_update_suffixes():
    set_loop_suffix("-loop1")
    set_table_suffix("-table1")
    g = define_group("group", input_stream("input-topic", c, cb), persist(c), persist(c))
    assert table_name(g.group()) == "group-table1"
    assert loop_name(g.group()) == "group-loop1"
    assert g.group_table().topic == "group-table1"
    reset_suffixes()
    assert table_name(g.group()) == "group-table"
    assert loop_name(g.group()) == "group-loop"


def test_group_table_name():
    assert group_table("example-group") == "example-group-table"


def test_strings_to_streams():
    streams = strings_to_streams("input1", "input2")
    assert streams == ["input1", "input2"]


def test_duplicate_input_raises():
    with pytest.raises(GraphError, match="already exists"):
        define_group("group", input_stream("a", c, cb), inputs(["b", "a"], c, cb))


def test_empty_input_raises():
    with pytest.raises(GraphError, match="cannot be empty"):
        define_group("group", input_stream("", c, cb))


def test_topic_sets():
    g = define_group(
        "group",
        input_stream("in", c, cb),
        output("out", c),
        join("j", c),
        lookup("l", c),
        persist(c),
        loop(c, cb),
        visitor("v", cb),
    )
    assert g.is_output_topic("out")
    assert not g.is_output_topic("in")
    assert g.joint("j")
    assert not g.joint("l")
    assert edge_topics(g.inputs()) == ["in", "j", "l"]
    assert edge_topics(g.copartitioned()) == ["in", "j"]
    assert edge_topics(g.all_edges()) == [
        "j",
        "l",
        "in",
        "out",
        "group-loop",
        "group-table",
        "v",
    ]
    assert g.callback("group-loop") is cb
    assert g.codec("group-table") is c


def test_none_edge_ignored():
    g = define_group("group", input_stream("in", c, cb), inputs([], c, cb))
    assert edge_topics(g.all_edges()) == ["in"]