"""
Flow graph construction.

Every split becomes a chain of nodes. Withdrawals run from the funds
origin through budget and category towards the expense account; deposits
run from the revenue account through category into the funds node.
Which stages appear depends on the options, see ``WITHDRAWAL_CHAINS`` and
``DEPOSIT_CHAINS``.
"""
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from firefly_sankey.domain.transactions import absolute_amount
from firefly_sankey.logger import get_logger
from firefly_sankey.models import (
    FlowGraph,
    NodeType,
    SankeyNode,
    SankeyOptions,
    TransactionSplit,
)
from firefly_sankey.sankey.duplicates import DuplicateNames
from firefly_sankey.sankey.graph import LinkKey, links_from_totals

logger = get_logger(__name__)

ALL_FUNDS = "All Funds"
NO_CATEGORY = "[NO CATEGORY]"
NO_BUDGET = "[NO BUDGET]"
INCOME_SUFFIX = "(+)"
EXPENSE_SUFFIX = "(-)"


class Stage(Enum):
    ACCOUNT = "account"
    BUDGET = "budget"
    CATEGORY = "category"


# (has_budget, has_category, show_account) -> stages after the origin.
# A chain never ends at the origin, so with nothing enabled it ends at the account.
WITHDRAWAL_CHAINS: dict[tuple[bool, bool, bool], tuple[Stage, ...]] = {
    (True, True, True): (Stage.BUDGET, Stage.CATEGORY, Stage.ACCOUNT),
    (True, True, False): (Stage.BUDGET, Stage.CATEGORY),
    (True, False, True): (Stage.BUDGET, Stage.ACCOUNT),
    (False, True, True): (Stage.CATEGORY, Stage.ACCOUNT),
    (True, False, False): (Stage.BUDGET,),
    (False, True, False): (Stage.CATEGORY,),
    (False, False, True): (Stage.ACCOUNT,),
    (False, False, False): (Stage.ACCOUNT,),
}

# (show_account, has_category) -> stages before the destination.
DEPOSIT_CHAINS: dict[tuple[bool, bool], tuple[Stage, ...]] = {
    (True, True): (Stage.ACCOUNT, Stage.CATEGORY),
    (True, False): (Stage.ACCOUNT,),
    (False, True): (Stage.CATEGORY,),
    (False, False): (Stage.ACCOUNT,),
}


def with_suffix(name: str, suffix: str) -> str:
    return f"{name} {suffix}"


class FlowGraphBuilder:
    """
    Accumulates nodes and flows for one build.

    Nodes are memoized by ``(type, name)`` and flows by
    ``(source, target, currency)``. Flow values stay unrounded until
    ``build()``.
    """

    def __init__(self, options: SankeyOptions, duplicates: DuplicateNames | None = None) -> None:
        self.options = options
        self.duplicates = duplicates or DuplicateNames()
        self._nodes: list[SankeyNode] = []
        self._node_ids: dict[tuple[NodeType, str], int] = {}
        self._flows: dict[LinkKey, Decimal] = {}

    @property
    def has_budget(self) -> bool:
        return self.options.include_budgets

    @property
    def has_category(self) -> bool:
        return self.options.include_categories

    @property
    def show_accounts(self) -> bool:
        return self.options.with_accounts

    def get_or_create_node(self, name: str, node_type: NodeType) -> int:
        key = (node_type, name)
        node_id = self._node_ids.get(key)
        if node_id is None:
            node_id = len(self._nodes)
            self._nodes.append(SankeyNode(id=node_id, name=name, type=node_type))
            self._node_ids[key] = node_id
        return node_id

    def add_flow(self, source: int, target: int, amount: Decimal, currency: str) -> None:
        key = (source, target, currency)
        self._flows[key] = self._flows.get(key, Decimal(0)) + amount

    def add_splits(self, splits: Iterable[TransactionSplit]) -> None:
        for split in splits:
            self.add_split(split)

    def add_split(self, split: TransactionSplit) -> None:
        if split.type == "withdrawal":
            self._add_withdrawal(split)
        elif split.type == "deposit":
            self._add_deposit(split)
        elif split.type == "transfer":
            if self.options.with_assets:
                self._add_transfer(split)
        else:
            logger.debug("[SANKEY] Ignoring split of type '%s'.", split.type)

    def build(self) -> FlowGraph:
        return FlowGraph(nodes=list(self._nodes), links=links_from_totals(self._flows))

    def _add_withdrawal(self, split: TransactionSplit) -> None:
        if self.options.with_assets:
            origin = self.get_or_create_node(
                with_suffix(split.source_name, EXPENSE_SUFFIX), NodeType.ASSET
            )
        else:
            origin = self.get_or_create_node(ALL_FUNDS, NodeType.ASSET)

        stages = WITHDRAWAL_CHAINS[(self.has_budget, self.has_category, self.show_accounts)]
        chain = [origin] + [self._withdrawal_node(stage, split) for stage in stages]
        self._add_chain(chain, split)

    def _add_deposit(self, split: TransactionSplit) -> None:
        if self.options.with_assets:
            destination = self.get_or_create_node(
                with_suffix(split.destination_name, INCOME_SUFFIX), NodeType.ASSET
            )
        else:
            destination = self.get_or_create_node(ALL_FUNDS, NodeType.ASSET)

        stages = DEPOSIT_CHAINS[(self.show_accounts, self.has_category)]
        chain = [self._deposit_node(stage, split) for stage in stages] + [destination]
        self._add_chain(chain, split)

    def _add_transfer(self, split: TransactionSplit) -> None:
        source = self.get_or_create_node(
            with_suffix(split.source_name, INCOME_SUFFIX), NodeType.ASSET
        )
        target = self.get_or_create_node(
            with_suffix(split.destination_name, EXPENSE_SUFFIX), NodeType.ASSET
        )
        self._add_chain([source, target], split)

    def _add_chain(self, chain: list[int], split: TransactionSplit) -> None:
        amount = absolute_amount(split)
        for source, target in zip(chain, chain[1:]):
            self.add_flow(source, target, amount, split.currency_code)

    def _withdrawal_node(self, stage: Stage, split: TransactionSplit) -> int:
        if stage is Stage.BUDGET:
            return self.get_or_create_node(split.budget_name or NO_BUDGET, NodeType.BUDGET)
        if stage is Stage.CATEGORY:
            return self.get_or_create_node(
                self._category_name(split, EXPENSE_SUFFIX), NodeType.CATEGORY
            )
        return self.get_or_create_node(
            self._account_name(split.destination_name, EXPENSE_SUFFIX), NodeType.EXPENSE
        )

    def _deposit_node(self, stage: Stage, split: TransactionSplit) -> int:
        if stage is Stage.CATEGORY:
            return self.get_or_create_node(
                self._category_name(split, INCOME_SUFFIX), NodeType.CATEGORY
            )
        return self.get_or_create_node(
            self._account_name(split.source_name, INCOME_SUFFIX), NodeType.REVENUE
        )

    def _category_name(self, split: TransactionSplit, suffix: str) -> str:
        name = split.category_name or NO_CATEGORY
        # The placeholder always carries a direction
        if name == NO_CATEGORY or name in self.duplicates.categories:
            return with_suffix(name, suffix)
        return name

    def _account_name(self, name: str, suffix: str) -> str:
        if name in self.duplicates.accounts:
            return with_suffix(name, suffix)
        return name
