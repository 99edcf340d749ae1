import pytest

from ofitune import tuner as tuner_mod
from ofitune.model import create_model_context
from ofitune.params import get_param
from ofitune.regions import create_region_context
from ofitune.tuner import create_tuner, destroy_v1, get_coll_info_v1, init_v1
from ofitune.tuner_common import (
    NUM_ALGORITHMS,
    NUM_PROTOCOLS,
    Algorithm,
    CollFunc,
    Protocol,
    TunerError,
    TunerPlatform,
    TunerType,
    new_cost_table,
)

P5EN = "p5en.48xlarge"
P5 = "p5.48xlarge"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("NCCL_ALGO", "NCCL_PROTO", "OFI_NCCL_TUNER_TYPE"):
        monkeypatch.delenv(name, raising=False)
    get_param("tuner_force_type").reset()
    yield
    destroy_v1()
    get_param("tuner_force_type").reset()


def test_no_product_name_gives_no_tuner():
    assert create_tuner(128, 16, None) is None


def test_unknown_platform_gives_no_tuner():
    assert create_tuner(128, 16, "m5.large") is None


def test_internal_force_gives_no_tuner():
    assert create_tuner(128, 16, P5EN, "Internal") is None


def test_region_preferred_by_default():
    t = create_tuner(128, 16, P5EN)
    assert t.type is TunerType.REGION
    assert t.platform is TunerPlatform.P5EN
    assert (t.n_ranks, t.n_nodes) == (128, 16)


def test_model_when_forced():
    t = create_tuner(128, 16, P5, "Model")
    assert t.type is TunerType.MODEL
    assert t.platform is TunerPlatform.P5_P5E


def test_force_type_read_from_environment(monkeypatch):
    monkeypatch.setenv("OFI_NCCL_TUNER_TYPE", "Model")
    get_param("tuner_force_type").reset()
    t = create_tuner(128, 16, P5EN)
    assert t.type is TunerType.MODEL


def test_force_internal_from_environment(monkeypatch):
    monkeypatch.setenv("OFI_NCCL_TUNER_TYPE", "Internal")
    get_param("tuner_force_type").reset()
    assert create_tuner(128, 16, P5EN) is None


@pytest.mark.parametrize("n_bytes", [1024, 1 << 20, 1 << 28, 1 << 33])
def test_region_tuner_matches_region_context(n_bytes):
    t = create_tuner(128, 16, P5EN)
    ref = create_region_context(TunerPlatform.P5EN, 128, 16)
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    ref_table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    got = t.get_coll_info(CollFunc.ALL_REDUCE, n_bytes, 1, table)
    want = ref.get_coll_info_v3(CollFunc.ALL_REDUCE, n_bytes, 1, ref_table)
    assert got == want
    assert table == ref_table


def test_region_tuner_small_message_picks_tree_ll():
    t = create_tuner(128, 16, P5EN)
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    assert t.get_coll_info(CollFunc.ALL_REDUCE, 1024, 1, table) == (Algorithm.TREE, Protocol.LL)
    assert table[Algorithm.TREE][Protocol.LL] == 0.0


@pytest.mark.parametrize("nvls", [True, False])
def test_model_tuner_v2_matches_model_context(nvls):
    t = create_tuner(128, 16, P5, "Model")
    ref = create_model_context(TunerPlatform.P5_P5E, 128, 16)
    got = t.get_coll_info_v2(CollFunc.ALL_REDUCE, 1 << 24, False, nvls, 1)
    assert got == ref.get_coll_info_v2(CollFunc.ALL_REDUCE, 1 << 24, False, nvls, 1)
    assert got is not None and got[0] in set(Algorithm)


def test_closed_tuner_keeps_default():
    t = create_tuner(128, 16, P5EN)
    t.close()
    assert t.closed
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    assert t.get_coll_info(CollFunc.ALL_REDUCE, 1024, 1, table) is None
    assert table == new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    assert t.get_coll_info_v2(CollFunc.ALL_REDUCE, 1024, False, True, 1) is None


def test_context_manager_closes():
    with create_tuner(128, 16, P5EN) as t:
        assert not t.closed
    assert t.closed


def test_v1_rejects_explicit_algo(monkeypatch):
    monkeypatch.setenv("NCCL_ALGO", "ring")
    with pytest.raises(TunerError):
        init_v1(128, 16, P5EN)


def test_v1_rejects_explicit_proto(monkeypatch):
    monkeypatch.setenv("NCCL_PROTO", "simple")
    with pytest.raises(TunerError):
        init_v1(128, 16, P5EN)


def test_v1_roundtrip():
    t = init_v1(128, 16, P5EN)
    ref = create_region_context(TunerPlatform.P5EN, 128, 16)
    got = get_coll_info_v1(CollFunc.ALL_REDUCE, 1 << 20, False, True, 1)
    assert got == ref.get_coll_info_v2(CollFunc.ALL_REDUCE, 1 << 20, False, True, 1)
    destroy_v1()
    assert t.closed
    assert get_coll_info_v1(CollFunc.ALL_REDUCE, 1 << 20, False, True, 1) is None


def test_v1_reinit_replaces_previous():
    first = init_v1(128, 16, P5EN)
    second = init_v1(16, 16, P5)
    assert first.closed
    assert not second.closed
    assert tuner_mod._v1_tuner is second


def test_v1_without_tuner_returns_none():
    assert init_v1(128, 16, None) is None
    assert get_coll_info_v1(CollFunc.ALL_REDUCE, 1024, False, True, 1) is None