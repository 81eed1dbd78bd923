from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np
import pytest

from conftest import make_machine
from rbmvmc.nqs.wavefunction import full_psi, index_to_sigma, sigma_to_index
from rbmvmc.physics.basis import FixedMagnetizationBasis
from rbmvmc.utils.io import save_json, save_npz
from rbmvmc.utils.logging import log_event
from rbmvmc.utils.parallel import parallel_map
from rbmvmc.utils.rng import RngStreams


def test_parallel_map_preserves_order() -> None:
    def square(x: int) -> int:
        return x * x

    items = list(range(50))
    assert parallel_map(square, items, n_workers=4) == [x * x for x in items]
    assert parallel_map(square, items) == [x * x for x in items]
    with pytest.raises(ValueError):
        parallel_map(square, items, n_workers=0)


def test_rng_streams_are_reproducible_and_independent() -> None:
    first = RngStreams(seed=3).spawn(2)
    second = RngStreams(seed=3).spawn(2)

    a0, a1 = (g.random(4) for g in first)
    b0, b1 = (g.random(4) for g in second)
    np.testing.assert_array_equal(a0, b0)
    np.testing.assert_array_equal(a1, b1)
    assert not np.allclose(a0, a1)
    with pytest.raises(ValueError):
        RngStreams(seed=-1)


def test_index_sigma_bijection() -> None:
    for index in range(16):
        assert sigma_to_index(index_to_sigma(4, index)) == index
    np.testing.assert_array_equal(index_to_sigma(3, 0b101), [1, -1, 1])


def test_full_psi_is_normalized_and_ordered(dtype: type) -> None:
    machine = make_machine(4, 3, seed=80, dtype=dtype, sigma=0.5)

    psi = full_psi(machine)
    raw = full_psi(machine, normalize=False, n_workers=3)

    assert psi.shape == (16,)
    np.testing.assert_allclose(np.linalg.norm(psi), 1.0, rtol=1.0e-12)
    np.testing.assert_allclose(raw[5], machine.amplitude(index_to_sigma(4, 5)), rtol=1.0e-14)
    np.testing.assert_allclose(psi, raw / np.linalg.norm(raw), rtol=1.0e-12)


def test_full_psi_on_sector_basis() -> None:
    machine = make_machine(4, 2, seed=81)
    configurations = FixedMagnetizationBasis(4, 2).enumerate()
    psi = full_psi(machine, configurations)
    assert psi.shape == (6,)
    np.testing.assert_allclose(np.linalg.norm(psi), 1.0, rtol=1.0e-12)


def test_log_event_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("rbmvmc.test")
    with caplog.at_level(logging.INFO, logger="rbmvmc.test"):
        log_event(logger, "iteration", energy=-1.5, path=Path("x"))

    body = json.loads(caplog.records[-1].getMessage())
    assert body == {"event": "iteration", "energy": -1.5, "path": "x"}


def test_output_helpers_create_directories(tmp_path: Path) -> None:
    save_json(tmp_path / "a" / "metrics.json", {"b": 1, "a": 2})
    save_npz(tmp_path / "b" / "psi.npz", psi=np.ones(3))

    assert json.loads((tmp_path / "a" / "metrics.json").read_text()) == {"a": 2, "b": 1}
    with np.load(tmp_path / "b" / "psi.npz") as data:
        np.testing.assert_array_equal(data["psi"], np.ones(3))
