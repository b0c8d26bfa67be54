from firefly_sankey.models import FlowGraph, NodeType, SankeyLink, SankeyNode
from firefly_sankey.sankey.groups import group_small_nodes


def _node(node_id: int, name: str, node_type: NodeType) -> SankeyNode:
    return SankeyNode(id=node_id, name=name, type=node_type)


def _link(source: int, target: int, value: float, currency: str = "USD") -> SankeyLink:
    return SankeyLink(source=source, target=target, value=value, currency=currency)


def _assert_dense(graph: FlowGraph) -> None:
    assert all(node.id == index for index, node in enumerate(graph.nodes))
    for link in graph.links:
        assert 0 <= link.source < len(graph.nodes)
        assert 0 <= link.target < len(graph.nodes)


def test_small_revenue_accounts_are_merged():
    graph = FlowGraph(
        nodes=[
            _node(0, "Gift", NodeType.REVENUE),
            _node(1, "Refund", NodeType.REVENUE),
            _node(2, "Employer", NodeType.REVENUE),
            _node(3, "All Funds", NodeType.ASSET),
        ],
        links=[_link(2, 3, 500.0), _link(1, 3, 40.0), _link(0, 3, 30.0)],
    )

    result = group_small_nodes(graph, min_account_amount=100)

    _assert_dense(result)
    names = [node.name for node in result.nodes]
    assert names == ["[OTHER ACCOUNTS] (+)", "Employer", "All Funds"]
    assert [(link.source, link.target, link.value) for link in result.links] == [
        (1, 2, 500.0),
        (0, 2, 70.0),
    ]


def test_small_expense_accounts_use_expense_bucket():
    graph = FlowGraph(
        nodes=[
            _node(0, "All Funds", NodeType.ASSET),
            _node(1, "Kiosk", NodeType.EXPENSE),
            _node(2, "Landlord", NodeType.EXPENSE),
        ],
        links=[_link(0, 2, 900.0), _link(0, 1, 12.345)],
    )

    result = group_small_nodes(graph, min_account_amount=50)

    other = next(node for node in result.nodes if node.name == "[OTHER ACCOUNTS] (-)")
    assert other.type == NodeType.EXPENSE
    assert "Kiosk" not in [node.name for node in result.nodes]
    assert result.links[-1].target == other.id
    assert result.links[-1].value == 12.35


def test_category_polarity_follows_suffix():
    graph = FlowGraph(
        nodes=[
            _node(0, "[NO CATEGORY] (+)", NodeType.CATEGORY),
            _node(1, "All Funds", NodeType.ASSET),
            _node(2, "Snacks", NodeType.CATEGORY),
            _node(3, "Salary", NodeType.CATEGORY),
        ],
        links=[_link(3, 1, 1000.0), _link(0, 1, 5.0), _link(1, 2, 5.0)],
    )

    result = group_small_nodes(graph, min_category_amount=50)

    _assert_dense(result)
    names = {node.name for node in result.nodes}
    assert "[OTHER CATEGORIES] (+)" in names
    assert "[OTHER CATEGORIES] (-)" in names
    assert "Snacks" not in names
    assert "[NO CATEGORY] (+)" not in names


def test_category_total_counts_both_directions():
    graph = FlowGraph(
        nodes=[
            _node(0, "All Funds", NodeType.ASSET),
            _node(1, "Food", NodeType.CATEGORY),
            _node(2, "Store", NodeType.EXPENSE),
        ],
        links=[_link(0, 1, 30.0), _link(1, 2, 30.0)],
    )

    # 30 in + 30 out
    assert group_small_nodes(graph, min_category_amount=60).nodes == graph.nodes
    assert any(
        node.name == "[OTHER CATEGORIES] (-)"
        for node in group_small_nodes(graph, min_category_amount=61).nodes
    )


def test_unused_other_nodes_are_dropped():
    graph = FlowGraph(
        nodes=[_node(0, "Tip", NodeType.REVENUE), _node(1, "All Funds", NodeType.ASSET)],
        links=[_link(0, 1, 1.0)],
    )

    result = group_small_nodes(graph, min_account_amount=10, min_category_amount=10)

    assert [node.name for node in result.nodes] == ["[OTHER ACCOUNTS] (+)", "All Funds"]


def test_nothing_to_group_returns_same_graph():
    graph = FlowGraph(
        nodes=[_node(0, "Employer", NodeType.REVENUE), _node(1, "All Funds", NodeType.ASSET)],
        links=[_link(0, 1, 500.0)],
    )

    result = group_small_nodes(graph, min_account_amount=100)

    assert result.nodes == graph.nodes
    assert result.links == graph.links


def test_currencies_stay_separate_after_merge():
    graph = FlowGraph(
        nodes=[
            _node(0, "A", NodeType.REVENUE),
            _node(1, "B", NodeType.REVENUE),
            _node(2, "All Funds", NodeType.ASSET),
        ],
        links=[_link(0, 2, 10.0, "USD"), _link(1, 2, 20.0, "EUR")],
    )

    result = group_small_nodes(graph, min_account_amount=100)

    assert sorted((link.currency, link.value) for link in result.links) == [
        ("EUR", 20.0),
        ("USD", 10.0),
    ]


def test_dangling_links_are_skipped():
    graph = FlowGraph(
        nodes=[_node(0, "Tip", NodeType.REVENUE), _node(1, "All Funds", NodeType.ASSET)],
        links=[_link(0, 1, 1.0), _link(5, 1, 3.0)],
    )

    result = group_small_nodes(graph, min_account_amount=10)

    _assert_dense(result)
    assert len(result.links) == 1


def test_account_exactly_at_threshold_is_not_grouped():
    graph = FlowGraph(
        nodes=[
            _node(0, "Employer", NodeType.REVENUE),
            _node(1, "Salary", NodeType.CATEGORY),
            _node(2, "Bonus", NodeType.CATEGORY),
        ],
        links=[_link(0, 1, 0.7), _link(0, 2, 0.1)],
    )

    result = group_small_nodes(graph, min_account_amount=0.8)

    assert [node.name for node in result.nodes] == ["Employer", "Salary", "Bonus"]


def test_category_exactly_at_threshold_is_not_grouped():
    graph = FlowGraph(
        nodes=[
            _node(0, "All Funds", NodeType.ASSET),
            _node(1, "Snacks", NodeType.CATEGORY),
            _node(2, "Store", NodeType.EXPENSE),
        ],
        links=[_link(0, 1, 0.7), _link(1, 2, 0.1)],
    )

    # 0.7 in, 0.1 out
    result = group_small_nodes(graph, min_category_amount=0.8)

    assert "Snacks" in [node.name for node in result.nodes]


def test_grouping_resolves_links_by_node_id():
    graph = FlowGraph(
        nodes=[
            _node(7, "Gift", NodeType.REVENUE),
            _node(3, "Employer", NodeType.REVENUE),
            _node(-1, "All Funds", NodeType.ASSET),
        ],
        links=[_link(3, -1, 500.0), _link(7, -1, 30.0)],
    )

    result = group_small_nodes(graph, min_account_amount=100)

    _assert_dense(result)
    assert [node.name for node in result.nodes] == ["[OTHER ACCOUNTS] (+)", "Employer", "All Funds"]
    assert [(link.source, link.target, link.value) for link in result.links] == [
        (1, 2, 500.0),
        (0, 2, 30.0),
    ]
