"""
Tests for the federation pipeline builder.
"""
from unittest.mock import MagicMock

import pytest

from referral_chains.database import PrefixCollectionResolver
from referral_chains.services.errors import NoChainsFound
from referral_chains.services.federation_pipeline import FederationPipelineBuilder, FederationPlan
from referral_chains.services.ranking import top_n_stages

from conftest import make_collection


@pytest.fixture
def builder():
    return FederationPipelineBuilder(PrefixCollectionResolver("treeNodes"), users_collection="users")


def test_single_chain_has_no_union_stages(builder):
    plan = builder.build(["Gold"])

    assert plan.base_collection == "treeNodesGold"
    assert plan.stages == []
    assert plan.collections == ["treeNodesGold"]


def test_every_chain_is_included_exactly_once(builder):
    plan = builder.build(["Gold", "Silver", "Bronze", "Silver"])

    unioned = [stage["$unionWith"]["coll"] for stage in plan.stages]
    covered = [plan.base_collection, *unioned]
    assert sorted(covered) == ["treeNodesBronze", "treeNodesGold", "treeNodesSilver"]
    assert len(covered) == len(set(covered))


def test_input_order_does_not_change_the_plan(builder):
    forward = builder.build(["A", "B", "C"], join_users=True).extend(top_n_stages())
    backward = builder.build(["C", "B", "A"], join_users=True).extend(top_n_stages())

    assert forward == backward


def test_empty_chain_list_raises_no_chains_found(builder):
    with pytest.raises(NoChainsFound):
        builder.build([])


def test_user_join_is_attached_once_after_all_unions(builder):
    plan = builder.build(["Gold", "Silver", "Bronze"], join_users=True)

    operators = [next(iter(stage)) for stage in plan.stages]
    assert operators == ["$unionWith", "$unionWith", "$lookup", "$unwind"]
    assert plan.stages[2]["$lookup"] == {
        "from": "users",
        "localField": "user",
        "foreignField": "_id",
        "as": "userData",
    }
    # A plain string $unwind drops rows whose user did not resolve
    assert plan.stages[3] == {"$unwind": "$userData"}


def test_single_chain_join_matches_multi_chain_join_tail(builder):
    single = builder.build(["Gold"], join_users=True)
    multi = builder.build(["Gold", "Silver"], join_users=True)

    assert single.stages == multi.stages[-2:]


def test_no_join_without_search(builder):
    plan = builder.build(["Gold", "Silver"])

    assert all("$lookup" not in stage for stage in plan.stages)


def test_builder_uses_injected_resolver():
    resolver = MagicMock()
    resolver.resolve.side_effect = lambda name: f"nodes_{name.lower()}"

    plan = FederationPipelineBuilder(resolver).build(["Gold", "Silver"])

    assert plan.base_collection == "nodes_gold"
    assert plan.stages == [{"$unionWith": {"coll": "nodes_silver"}}]


def test_extend_returns_new_plan():
    plan = FederationPlan(base_collection="treeNodesGold", stages=[], collections=["treeNodesGold"])

    extended = plan.extend([{"$limit": 10}])

    assert plan.stages == []
    assert extended.stages == [{"$limit": 10}]
    assert extended.base_collection == "treeNodesGold"


@pytest.mark.asyncio
async def test_execute_runs_one_aggregate_on_base(database, collections):
    rows = [{"nodeId": 1, "totalMembers": 3}]
    collections["treeNodesGold"] = make_collection(aggregate_result=rows)
    plan = FederationPlan(
        base_collection="treeNodesGold",
        stages=[{"$unionWith": {"coll": "treeNodesSilver"}}],
        collections=["treeNodesGold", "treeNodesSilver"],
    )

    result = await plan.execute(database)

    assert result == rows
    collections["treeNodesGold"].aggregate.assert_called_once_with(plan.stages)
    collections["treeNodesGold"].aggregate.return_value.to_list.assert_awaited_once_with(length=None)
    assert "treeNodesSilver" not in collections
